"""Coin economy: issuing and redeeming coin codes, crediting balances.

A code can be redeemed by many guests, each at most once. The code engine only
manages code records; crediting the guest is a separate step (``credit``) so
that the two writes stay independent.
"""

import logging
import secrets
import string
from typing import List, Optional, Tuple

from partybar import config
from partybar.errors import (
    AlreadyRedeemedError,
    CoinCodeExhaustedError,
    CoinCodeNotFoundError,
    ConflictError,
    DomainError,
    DuplicateCoinCodeError,
    InvalidAmountError,
    NotAuthenticatedError,
)
from partybar.gate import Session
from partybar.repository import Repository, retry_on_conflict
from partybar.schemas import CoinCode, User

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
ISSUE_ATTEMPTS = 10


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CoinCodeService:
    def __init__(
        self,
        repo: Repository,
        code_length: int = config.COIN_CODE_LENGTH,
        write_attempts: int = config.WRITE_ATTEMPTS,
    ) -> None:
        self._repo = repo
        self.code_length = code_length
        self.write_attempts = write_attempts

    def _generate(self) -> str:
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(self.code_length))

    def issue(self, amount: int, code: Optional[str] = None) -> str:
        """Create a code worth ``amount`` coins per redemption and return it.

        A generated code that collides with an existing one is regenerated.

        Raises:
            InvalidAmountError: If ``amount`` is not a positive integer.
            DuplicateCoinCodeError: If the explicit ``code`` already exists.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise InvalidAmountError(amount)

        if code is not None:
            coin_code = CoinCode(code=code, amount=amount)
            try:
                self._repo.save_coin_code(coin_code, expected_version=0)
            except ConflictError:
                raise DuplicateCoinCodeError(coin_code.code)
        else:
            for _ in range(ISSUE_ATTEMPTS):
                coin_code = CoinCode(code=self._generate(), amount=amount)
                try:
                    self._repo.save_coin_code(coin_code, expected_version=0)
                    break
                except ConflictError:
                    logger.warning("Generated coin code collided with an existing one, regenerating")
            else:
                raise DuplicateCoinCodeError(coin_code.code)

        logger.info("Issued coin code %s worth %d coin(s)", coin_code.code, amount)
        return coin_code.code

    def redeem(self, code: str, user_id: str) -> int:
        """Record ``user_id`` against the code and return the code's amount.

        Raises:
            CoinCodeNotFoundError: If no such code exists.
            AlreadyRedeemedError: If this user already redeemed it. Nothing is written.
            CoinCodeExhaustedError: If the code reached its redemption cap.
        """
        normalized = normalize_code(code)

        def attempt() -> int:
            found = self._repo.get_coin_code_versioned(normalized) if normalized else None
            if found is None:
                raise CoinCodeNotFoundError(normalized)
            coin_code, version = found
            if user_id in coin_code.redeemed_by:
                raise AlreadyRedeemedError(normalized, user_id)
            if coin_code.exhausted:
                raise CoinCodeExhaustedError(normalized)

            redeemed = coin_code.model_copy(update={"redeemed_by": [*coin_code.redeemed_by, user_id]})
            self._repo.save_coin_code(redeemed, expected_version=version)
            return coin_code.amount

        amount = retry_on_conflict(attempt, self.write_attempts)
        logger.info("User %s redeemed %s for %d coin(s)", user_id, normalized, amount)
        return amount

    def credit(self, session: Session, amount: int) -> User:
        """Add ``amount`` to the session user's balance and persist it."""

        def attempt() -> User:
            found = self._repo.get_current_user_versioned(session.key)
            if found is None:
                raise NotAuthenticatedError()
            user, version = found
            credited = user.model_copy(update={"coins": user.coins + amount})
            self._repo.set_current_user(credited, session.key, expected_version=version)
            return credited

        return retry_on_conflict(attempt, self.write_attempts)

    def redeem_and_credit(self, session: Session, code: str) -> Tuple[int, User]:
        """Redeem ``code`` for the session user and credit the amount.

        If the credit cannot be written the redemption is released again, so the
        guest can retry the same code.
        """
        amount = self.redeem(code, session.user.id)
        try:
            user = self.credit(session, amount)
        except DomainError:
            self.release(code, session.user.id)
            raise
        return amount, user

    def release(self, code: str, user_id: str) -> None:
        """Remove ``user_id`` from the code's redemption list, if present."""
        normalized = normalize_code(code)

        def attempt() -> None:
            found = self._repo.get_coin_code_versioned(normalized)
            if found is None:
                return
            coin_code, version = found
            if user_id not in coin_code.redeemed_by:
                return
            remaining = [u for u in coin_code.redeemed_by if u != user_id]
            self._repo.save_coin_code(
                coin_code.model_copy(update={"redeemed_by": remaining}), expected_version=version
            )

        retry_on_conflict(attempt, self.write_attempts)
        logger.warning("Redemption of %s by %s released: credit was not applied", normalized, user_id)

    def list_codes(self) -> List[CoinCode]:
        """All codes, newest first."""
        return list(reversed(self._repo.list_coin_codes()))

    def get(self, code: str) -> CoinCode:
        found = self._repo.get_coin_code_versioned(normalize_code(code))
        if found is None:
            raise CoinCodeNotFoundError(normalize_code(code))
        return found[0]
