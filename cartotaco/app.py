from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import ValidationError
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import get_current_user, get_state, require_admin, require_user
from .auth.models import LoginRequest, RegisterRequest
from .auth.provider import StaticAuthProvider
from .config import DEFAULT_APP_CONFIG, AppConfig, StartupReport, validate_config
from .datasource import DataSource
from .geocoding import GeocodeResult, geocode_address
from .results import ServiceResult
from .sites.filters import filter_sites
from .sites.hours import is_open_now, weekly_hours
from .sites.models import FilterConfig, SiteDetail, SitesResponse, SummaryStats
from .sites.recent import recently_added
from .state import AppState
from .trail import LocationStopRequest, MoveStopRequest, Trail, TrailResponse, TrailStop
from .trail.models import TransportMode
from .submissions import LocationSubmission, SubmissionService, SubmissionUpdate

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig = DEFAULT_APP_CONFIG,
    source: DataSource | None = None,
    complete_view: str | None = None,
) -> FastAPI:
    """Build the API around a fresh ``AppState``; pass *source* to skip backend setup."""
    logging.basicConfig(level=config.log_level)
    if source is None:
        report = validate_config(config)
    else:
        report = StartupReport()
    state = AppState(config, source=source, complete_view=complete_view)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await state.aclose()

    app = FastAPI(title="CartoTaco API", version="2.0.0", lifespan=lifespan)
    app.state.cartotaco = state
    app.state.startup_report = report
    app.add_middleware(SessionMiddleware, secret_key=config.session_secret)
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # ── Public endpoints ─────────────────────────────────────────────────

    @app.get("/health")
    def health(state: AppState = Depends(get_state)) -> dict:
        return {
            "status": "ok",
            "sites_loaded": state.sites.loaded,
            "data_error": state.sites.error,
            "disabled_features": app.state.startup_report.disabled_features,
        }

    @app.get("/sites", response_model=SitesResponse)
    async def sites(request: Request, state: AppState = Depends(get_state)) -> SitesResponse:
        await state.sites.ensure_loaded()
        user = get_current_user(request)
        if user:
            await state.loaded_favorites(user)
            visible = list(state.view_for(user).visible)
        else:
            visible = list(state.sites.sites)
        return SitesResponse(sites=visible, total=len(state.sites.sites), error=state.sites.error)

    @app.post("/sites/search", response_model=SitesResponse)
    async def search_sites(
        body: FilterConfig, request: Request, state: AppState = Depends(get_state),
    ) -> SitesResponse:
        await state.sites.ensure_loaded()
        user = get_current_user(request)
        favorites = (await state.loaded_favorites(user)).ids if user else frozenset()
        matched = filter_sites(state.sites.sites, body, favorites, timezone_name=state.config.timezone)
        return SitesResponse(sites=matched, total=len(state.sites.sites), error=state.sites.error)

    @app.get("/sites/recent", response_model=SitesResponse)
    async def recent_sites(days: int | None = None, state: AppState = Depends(get_state)) -> SitesResponse:
        await state.sites.ensure_loaded()
        recent = recently_added(state.sites.sites, days=days or state.config.recent_days)
        return SitesResponse(sites=recent, total=len(state.sites.sites), error=state.sites.error)

    @app.get("/sites/{est_id}", response_model=SiteDetail)
    async def site_detail(est_id: int, request: Request, state: AppState = Depends(get_state)) -> SiteDetail:
        await state.sites.ensure_loaded()
        site = state.sites.get(est_id)
        if site is None:
            raise HTTPException(status_code=404, detail="Site not found")
        user = get_current_user(request)
        favorited = (await state.loaded_favorites(user)).is_favorited(est_id) if user else False
        return SiteDetail(
            site=site,
            weekly_hours=weekly_hours(site.start_hours, site.end_hours),
            is_open_now=is_open_now(site.start_hours, site.end_hours, timezone_name=state.config.timezone),
            favorited=favorited,
        )

    @app.get("/summary", response_model=SummaryStats)
    async def summary(state: AppState = Depends(get_state)) -> SummaryStats:
        await state.sites.ensure_loaded()
        return state.sites.summary

    # ── Auth endpoints ───────────────────────────────────────────────────

    @app.post("/auth/register")
    def register(body: RegisterRequest, request: Request, state: AppState = Depends(get_state)) -> dict:
        user = state.users.register(body.username, body.password)
        if not user:
            raise HTTPException(status_code=409, detail="Username already taken")
        request.session["user"] = user
        return {"status": "ok", "user": user}

    @app.post("/auth/login")
    def login(body: LoginRequest, request: Request, state: AppState = Depends(get_state)) -> dict:
        user = state.users.authenticate(body.username, body.password)
        if not user:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        request.session["user"] = user
        return {"status": "ok", "user": user}

    @app.post("/auth/logout")
    def logout(request: Request, state: AppState = Depends(get_state)) -> dict:
        user = get_current_user(request)
        if user:
            state.forget_user(user)
        request.session.clear()
        return {"status": "logged_out"}

    @app.get("/auth/me")
    def auth_me(user: dict = Depends(require_user)) -> dict:
        return user

    # ── Filters ──────────────────────────────────────────────────────────

    @app.get("/filters", response_model=FilterConfig)
    def get_filters(user: dict = Depends(require_user), state: AppState = Depends(get_state)) -> FilterConfig:
        return state.view_for(user).config

    @app.put("/filters", response_model=FilterConfig)
    def put_filters(
        body: FilterConfig, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> FilterConfig:
        view = state.view_for(user)
        view.set_config(body)
        return view.config

    # ── Favorites ────────────────────────────────────────────────────────

    @app.get("/favorites")
    async def list_favorites(user: dict = Depends(require_user), state: AppState = Depends(get_state)) -> dict:
        store = await state.loaded_favorites(user)
        return {"ids": sorted(store.ids), "count": store.count}

    @app.put("/favorites/{est_id}", response_model=ServiceResult)
    async def add_favorite(
        est_id: int, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> ServiceResult:
        store = await state.loaded_favorites(user)
        return _or_502(await store.add(est_id))

    @app.delete("/favorites/{est_id}", response_model=ServiceResult)
    async def remove_favorite(
        est_id: int, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> ServiceResult:
        store = await state.loaded_favorites(user)
        return _or_502(await store.remove(est_id))

    @app.post("/favorites/{est_id}/toggle")
    async def toggle_favorite(
        est_id: int, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> dict:
        store = await state.loaded_favorites(user)
        result = _or_502(await store.flip(est_id))
        return {"est_id": est_id, "favorited": result.data["favorited"], "count": store.count}

    # ── Trail ────────────────────────────────────────────────────────────

    def _trail_response(trail: Trail) -> TrailResponse:
        return TrailResponse(stops=list(trail.stops), mode=trail.mode, route=trail.route, count=trail.count)

    @app.get("/trail", response_model=TrailResponse)
    def get_trail(user: dict = Depends(require_user), state: AppState = Depends(get_state)) -> TrailResponse:
        return _trail_response(state.trail_for(user))

    @app.put("/trail/stops/{est_id}", response_model=TrailResponse)
    async def add_trail_stop(
        est_id: int, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> TrailResponse:
        await state.sites.ensure_loaded()
        site = state.sites.get(est_id)
        if site is None:
            raise HTTPException(status_code=404, detail="Site not found")
        try:
            stop = TrailStop.from_site(site)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        trail = state.trail_for(user)
        trail.add_stop(stop)
        return _trail_response(trail)

    @app.delete("/trail/stops/{est_id}", response_model=TrailResponse)
    def remove_trail_stop(
        est_id: str, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> TrailResponse:
        trail = state.trail_for(user)
        if not trail.remove_stop(int(est_id) if est_id.isdigit() else est_id):
            raise HTTPException(status_code=404, detail="Stop not on trail")
        return _trail_response(trail)

    @app.post("/trail/location", response_model=TrailResponse)
    def add_location_stop(
        body: LocationStopRequest, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> TrailResponse:
        trail = state.trail_for(user)
        trail.add_location_stop(body.latitude, body.longitude, body.position)
        return _trail_response(trail)

    @app.post("/trail/move", response_model=TrailResponse)
    def move_trail_stop(
        body: MoveStopRequest, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> TrailResponse:
        trail = state.trail_for(user)
        try:
            trail.move_stop(body.from_index, body.to_index)
        except IndexError:
            raise HTTPException(status_code=400, detail="No stop at that position")
        return _trail_response(trail)

    @app.put("/trail/mode/{mode}", response_model=TrailResponse)
    def set_trail_mode(
        mode: TransportMode, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> TrailResponse:
        trail = state.trail_for(user)
        trail.set_mode(mode)
        return _trail_response(trail)

    @app.post("/trail/route", response_model=TrailResponse)
    async def trail_route(user: dict = Depends(require_user), state: AppState = Depends(get_state)) -> TrailResponse:
        trail = state.trail_for(user)
        await trail.refresh_route(state.config.geocoding)
        return _trail_response(trail)

    @app.delete("/trail", response_model=TrailResponse)
    def clear_trail(user: dict = Depends(require_user), state: AppState = Depends(get_state)) -> TrailResponse:
        trail = state.trail_for(user)
        trail.clear()
        return _trail_response(trail)

    # ── Submissions ──────────────────────────────────────────────────────

    def _submissions(user: dict, state: AppState) -> SubmissionService:
        return SubmissionService(state.source, StaticAuthProvider(user))

    @app.post("/submissions", response_model=ServiceResult)
    async def submit_location(
        body: LocationSubmission, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> ServiceResult:
        return _or_502(await _submissions(user, state).submit(body))

    @app.get("/submissions", response_model=ServiceResult)
    async def my_submissions(
        status: str | None = None, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> ServiceResult:
        return _or_502(await _submissions(user, state).list_submissions(status))

    @app.get("/submissions/stats", response_model=ServiceResult)
    async def submission_stats(user: dict = Depends(require_user), state: AppState = Depends(get_state)) -> ServiceResult:
        return _or_502(await _submissions(user, state).stats())

    @app.get("/submissions/{submission_id}", response_model=ServiceResult)
    async def get_submission(
        submission_id: str, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> ServiceResult:
        result = await _submissions(user, state).get(submission_id)
        if not result.success:
            raise HTTPException(status_code=404, detail=result.error)
        return result

    @app.patch("/submissions/{submission_id}", response_model=ServiceResult)
    async def update_submission(
        submission_id: str,
        body: SubmissionUpdate,
        user: dict = Depends(require_user),
        state: AppState = Depends(get_state),
    ) -> ServiceResult:
        try:
            result = await _submissions(user, state).update(submission_id, body)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))
        if not result.success:
            raise HTTPException(status_code=404, detail=result.error)
        return result

    @app.delete("/submissions/{submission_id}", response_model=ServiceResult)
    async def delete_submission(
        submission_id: str, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> ServiceResult:
        result = await _submissions(user, state).delete(submission_id)
        if not result.success:
            raise HTTPException(status_code=404, detail=result.error)
        return result

    @app.get("/geocode", response_model=GeocodeResult)
    async def geocode(
        address: str, user: dict = Depends(require_user), state: AppState = Depends(get_state),
    ) -> GeocodeResult:
        return await geocode_address(address, state.config.geocoding)

    # ── Admin endpoints ──────────────────────────────────────────────────

    @app.post("/admin/refresh")
    async def refresh(user: dict = Depends(require_admin), state: AppState = Depends(get_state)) -> dict:
        applied = await state.sites.refresh()
        return {
            "applied": applied,
            "sites": len(state.sites.sites),
            "sequence": state.sites.snapshot.sequence,
            "error": state.sites.error,
        }


def _or_502(result: ServiceResult) -> ServiceResult:
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error)
    return result


app = create_app()
