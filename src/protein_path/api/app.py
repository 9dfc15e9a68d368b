"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse

from protein_path.api.models import (
    CredentialsIn,
    GoalsIn,
    MealIn,
    MealOut,
    SessionOut,
    SummaryOut,
)
from protein_path.app_logging import configure_logging
from protein_path.containers import AppContainer
from protein_path.domain.goals import UserGoals
from protein_path.domain.identity import UNAUTHENTICATED, Authenticated
from protein_path.errors import (
    AuthError,
    EstimationError,
    ProteinPathError,
    StaleIdentityError,
    ValidationError,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies.

    Sign-in and sign-up return an ``access_token``. Every other route that
    touches user data requires it as ``Authorization: Bearer <token>``.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.session_store.start()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ProteinPathError)
    async def handle_core_error(
        request: Request, exc: ProteinPathError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("Request failed: %s", exc, extra={"path": request.url.path})
        content: dict[str, object] = {"detail": str(exc)}
        if isinstance(exc, EstimationError):
            content["category"] = exc.category
            content["retryable"] = exc.retryable
        return JSONResponse(status_code=status_code, content=content)

    async def require_caller(
        request: Request, authorization: str | None = Header(default=None)
    ) -> Authenticated:
        """Ensure requests carry the access token of the signed-in user."""
        state_container: AppContainer = request.app.state.container
        return state_container.session_store.authorize(_bearer_token(authorization))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/auth/session")
    async def current_session(
        request: Request, authorization: str | None = Header(default=None)
    ) -> SessionOut:
        """Return the caller's identity, or signed out without a valid token."""
        state_container: AppContainer = request.app.state.container
        try:
            identity = state_container.session_store.authorize(
                _bearer_token(authorization)
            )
        except AuthError:
            return SessionOut.from_identity(UNAUTHENTICATED)
        return SessionOut.from_identity(identity)

    @app.post("/auth/sign-in")
    async def sign_in(credentials: CredentialsIn, request: Request) -> SessionOut:
        """Sign in with email and password."""
        state_container: AppContainer = request.app.state.container
        session_store = state_container.session_store
        identity = session_store.sign_in(credentials.email, credentials.password)
        return SessionOut.from_identity(identity, session_store.access_token)

    @app.post("/auth/sign-up")
    async def sign_up(credentials: CredentialsIn, request: Request) -> SessionOut:
        """Create an account; confirmation may be required before sign-in."""
        state_container: AppContainer = request.app.state.container
        session_store = state_container.session_store
        identity = session_store.sign_up(credentials.email, credentials.password)
        if isinstance(identity, Authenticated):
            return SessionOut.from_identity(identity, session_store.access_token)
        return SessionOut.from_identity(identity)

    @app.post("/auth/sign-out", dependencies=[Depends(require_caller)])
    async def sign_out(request: Request) -> SessionOut:
        """Sign out of the current session."""
        state_container: AppContainer = request.app.state.container
        state_container.session_store.sign_out()
        return SessionOut.from_identity(state_container.session_store.current)

    @app.get("/meals", dependencies=[Depends(require_caller)])
    async def list_meals(request: Request) -> list[MealOut]:
        """Return the signed-in user's meals, newest first."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.meal_service.list_meals()
        return [MealOut.from_meal(meal) for meal in meals]

    @app.post(
        "/meals",
        status_code=status.HTTP_201_CREATED,
        dependencies=[Depends(require_caller)],
    )
    async def log_meal(payload: MealIn, request: Request) -> MealOut:
        """Estimate nutrition for a meal and save it."""
        state_container: AppContainer = request.app.state.container
        image = _decode_image(payload.image_base64)
        meal = await state_container.meal_service.log_meal(
            payload.description, image, payload.type
        )
        return MealOut.from_meal(meal)

    @app.delete("/meals/{meal_id}", dependencies=[Depends(require_caller)])
    async def delete_meal(meal_id: str, request: Request) -> dict[str, str]:
        """Delete a meal; unknown ids succeed without changes."""
        state_container: AppContainer = request.app.state.container
        state_container.meal_service.remove_meal(meal_id)
        return {"status": "ok"}

    @app.get("/goals")
    async def get_goals(
        request: Request, identity: Authenticated = Depends(require_caller)
    ) -> UserGoals:
        """Return the signed-in user's daily goals."""
        state_container: AppContainer = request.app.state.container
        return state_container.goal_store.load(identity.identity_id)

    @app.put("/goals")
    async def update_goals(
        payload: GoalsIn,
        request: Request,
        identity: Authenticated = Depends(require_caller),
    ) -> UserGoals:
        """Update the signed-in user's daily goals."""
        state_container: AppContainer = request.app.state.container
        return state_container.goal_store.update(
            identity.identity_id,
            calories=payload.calories,
            protein=payload.protein,
            carbs=payload.carbs,
            fat=payload.fat,
            sugar=payload.sugar,
        )

    @app.get("/summary")
    async def daily_summary(
        request: Request,
        day: date | None = None,
        identity: Authenticated = Depends(require_caller),
    ) -> SummaryOut:
        """Return totals and goal progress for a day (default today)."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.meal_service.list_meals()
        goals = state_container.goal_store.load(identity.identity_id)
        summary = state_container.stats_service.summarize(meals, goals, day)
        return SummaryOut.from_summary(summary)

    return app


def _status_for(exc: ProteinPathError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, StaleIdentityError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, AuthError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, EstimationError) and exc.retryable:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_502_BAD_GATEWAY


def _decode_image(image_base64: str | None) -> bytes | None:
    """Decode plain base64 or a data URL into image bytes."""
    if not image_base64:
        return None
    encoded = image_base64
    if encoded.startswith("data:"):
        _, _, encoded = encoded.partition(",")
    try:
        return base64.b64decode(encoded, validate=True) or None
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image is not valid base64") from exc


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
