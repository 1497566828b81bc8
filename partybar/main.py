import logging
import secrets
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Depends, Header, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from partybar import __version__, config, schemas
from partybar.catalog import DrinkCatalog
from partybar.clock import Clock, SystemClock
from partybar.coins import CoinCodeService
from partybar.database import DATABASE_URL, build_engine
from partybar.descriptions import GeminiDescriptionGenerator, describe_drink
from partybar.errors import DomainError, ErrorCode, NotAuthenticatedError
from partybar.gate import Session, SessionGate
from partybar.orders import OrderService
from partybar.poller import Poller
from partybar.qr import render_code_png
from partybar.repository import Repository
from partybar.schemas import Role
from partybar.sql_store import SqlRecordStore
from partybar.store import RecordStore

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

STATUS_FOR_CODE = {
    ErrorCode.COIN_CODE_NOT_FOUND: 404,
    ErrorCode.ALREADY_REDEEMED:    409,
    ErrorCode.COIN_CODE_EXHAUSTED: 409,
    ErrorCode.DUPLICATE_COIN_CODE: 409,
    ErrorCode.ORDER_NOT_FOUND:     404,
    ErrorCode.DRINK_NOT_FOUND:     404,
    ErrorCode.INSUFFICIENT_COINS:  402,
    ErrorCode.NOT_AUTHENTICATED:   401,
    ErrorCode.SESSION_EXPIRED:     401,
    ErrorCode.WRONG_ROLE:          403,
    ErrorCode.NO_ACTIVE_EVENT:     400,
    ErrorCode.EVENT_ENDED:         400,
    ErrorCode.INVALID_AMOUNT:      400,
    ErrorCode.CONFLICT:            409,
}


def _coin_code_response(coin_code: schemas.CoinCode) -> schemas.CoinCodeResponse:
    return schemas.CoinCodeResponse(
        code        = coin_code.code,
        amount      = coin_code.amount,
        redeemed_by = coin_code.redeemed_by,
        redemptions = len(coin_code.redeemed_by),
    )


def create_app(
    store: Optional[RecordStore] = None,
    clock: Optional[Clock] = None,
    generator: Optional[GeminiDescriptionGenerator] = None,
    seed_drinks: bool = config.SEED_DRINKS,
) -> FastAPI:
    if store is None:
        store = SqlRecordStore(build_engine(DATABASE_URL))
    clock     = clock or SystemClock()
    generator = generator or GeminiDescriptionGenerator()

    repo    = Repository(store)
    gate    = SessionGate(repo, clock)
    coins   = CoinCodeService(repo)
    orders  = OrderService(repo, clock)
    catalog = DrinkCatalog(repo)

    # Other terminals change the event (theme, duration); every client reads the
    # snapshot this poller keeps fresh.
    event_poller = Poller(repo.get_event_config, name="event-poller")
    event_poller.subscribe(
        lambda event: logger.info(
            "Event now: %s", f"{event.name} ({event.theme.value})" if event else "none"
        )
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if seed_drinks:
            catalog.seed_defaults()
        event_poller.start()
        yield
        await event_poller.stop()

    app = FastAPI(title="Party Bar API", version=__version__, lifespan=lifespan)
    app.state.repo         = repo
    app.state.gate         = gate
    app.state.event_poller = event_poller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        body = {"code": exc.code.value, "detail": exc.message}
        redirect = getattr(exc, "redirect", None)
        if redirect:
            body["redirect"] = redirect
        return JSONResponse(status_code=STATUS_FOR_CODE[exc.code], content=body)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"code": "INVALID_INPUT", "detail": exc.errors(include_url=False, include_context=False)},
        )

    # ---------------------------------------------------------------------------
    # Session dependencies  (X-Session-Key header)
    # ---------------------------------------------------------------------------

    def require(role: Optional[Role] = None):
        def dependency(x_session_key: Optional[str] = Header(None, alias="X-Session-Key")) -> Session:
            if not x_session_key:
                raise NotAuthenticatedError()
            return gate.check(x_session_key, role)
        return dependency

    any_user = require()
    guest    = require(Role.GUEST)
    kitchen  = require(Role.KITCHEN)
    admin    = require(Role.ADMIN)

    # ---------------------------------------------------------------------------
    # Public routes
    # ---------------------------------------------------------------------------

    @app.get("/api/health")
    def health_check():
        return {"status": "ok"}

    @app.get("/api/event", response_model=Optional[schemas.EventConfig])
    def get_event():
        """The active event as last observed by the poller."""
        if event_poller.running:
            return event_poller.observed
        return repo.get_event_config()

    @app.get("/api/drinks", response_model=List[schemas.Drink])
    def list_drinks():
        return catalog.list_drinks()

    @app.post("/api/login/guest", response_model=schemas.SessionResponse, status_code=201)
    def login_guest(payload: schemas.GuestLogin):
        session = gate.login_guest(payload.name, session_key=secrets.token_urlsafe(24))
        return schemas.SessionResponse(session_key=session.key, user=session.user, redirect=session.surface)

    @app.post("/api/login/staff", response_model=schemas.SessionResponse, status_code=201)
    def login_staff(payload: schemas.StaffLogin):
        session = gate.login_staff(
            payload.name,
            event_name  = payload.event_name,
            location    = payload.location,
            theme       = payload.theme,
            session_key = secrets.token_urlsafe(24),
        )
        event_poller.poll_once()
        return schemas.SessionResponse(session_key=session.key, user=session.user, redirect=session.surface)

    @app.post("/api/logout", status_code=204)
    def logout(x_session_key: Optional[str] = Header(None, alias="X-Session-Key")):
        if x_session_key:
            gate.logout(x_session_key)
        return Response(status_code=204)

    @app.get("/api/me", response_model=schemas.MeResponse)
    def me(session: Session = Depends(any_user)):
        time_left = gate.time_left_ms() if session.user.role is Role.GUEST else None
        return schemas.MeResponse(user=session.user, time_left_ms=time_left)

    # ---------------------------------------------------------------------------
    # Guest routes
    # ---------------------------------------------------------------------------

    @app.post("/api/orders", response_model=schemas.Order, status_code=201)
    def place_order(payload: schemas.OrderCreate, session: Session = Depends(guest)):
        drink = catalog.get(payload.drink_id)
        return orders.place_order(session, drink)

    @app.get("/api/orders", response_model=List[schemas.Order])
    def my_orders(session: Session = Depends(guest)):
        return orders.list_for_user(session.user.id)

    @app.post("/api/coins/redeem", response_model=schemas.RedeemResponse)
    def redeem_code(payload: schemas.RedeemRequest, session: Session = Depends(guest)):
        amount, user = coins.redeem_and_credit(session, payload.code)
        return schemas.RedeemResponse(
            amount  = amount,
            coins   = user.coins,
            message = f"Success! +{amount} coins added.",
        )

    # ---------------------------------------------------------------------------
    # Kitchen routes
    # ---------------------------------------------------------------------------

    @app.get("/api/kitchen/orders", response_model=List[schemas.Order])
    def active_orders(session: Session = Depends(kitchen)):
        return orders.list_active()

    @app.post("/api/kitchen/orders/{order_id}/advance", response_model=schemas.Order)
    def advance_order(order_id: str, session: Session = Depends(kitchen)):
        return orders.advance(order_id)

    # ---------------------------------------------------------------------------
    # Admin routes
    # ---------------------------------------------------------------------------

    @app.put("/api/admin/event", response_model=schemas.EventConfig)
    def update_event(update: schemas.EventUpdate, session: Session = Depends(admin)):
        event = gate.update_event(
            name           = update.name,
            location       = update.location,
            theme          = update.theme,
            duration_hours = update.duration_hours,
        )
        event_poller.poll_once()
        return event

    @app.post("/api/admin/drinks", response_model=schemas.Drink, status_code=201)
    def create_drink(payload: schemas.DrinkCreate, session: Session = Depends(admin)):
        return catalog.create(payload)

    @app.put("/api/admin/drinks/{drink_id}", response_model=schemas.Drink)
    def update_drink(drink_id: str, update: schemas.DrinkUpdate, session: Session = Depends(admin)):
        return catalog.update(drink_id, update)

    @app.delete("/api/admin/drinks/{drink_id}", status_code=204)
    def delete_drink(drink_id: str, session: Session = Depends(admin)):
        catalog.delete(drink_id)
        return Response(status_code=204)

    @app.post("/api/admin/drinks/describe", response_model=schemas.DescribeResponse)
    def describe(payload: schemas.DescribeRequest, session: Session = Depends(admin)):
        return schemas.DescribeResponse(
            description=describe_drink(payload.name, payload.ingredients, generator)
        )

    @app.post("/api/admin/coin-codes", response_model=schemas.CoinCodeResponse, status_code=201)
    def issue_code(payload: schemas.CoinCodeCreate, session: Session = Depends(admin)):
        code = coins.issue(payload.amount, code=payload.code)
        return _coin_code_response(coins.get(code))

    @app.get("/api/admin/coin-codes", response_model=List[schemas.CoinCodeResponse])
    def list_codes(session: Session = Depends(admin)):
        return [_coin_code_response(c) for c in coins.list_codes()]

    @app.get("/api/admin/coin-codes/{code}/qr")
    def code_qr(code: str, session: Session = Depends(admin)):
        """PNG QR code for printing or showing on the admin screen."""
        coin_code = coins.get(code)
        png = render_code_png(coin_code.code)
        if not png:
            return JSONResponse(status_code=503, content={"code": "QR_UNAVAILABLE", "detail": "QR code unavailable"})
        return Response(content=png, media_type="image/png")

    return app


app = create_app()
