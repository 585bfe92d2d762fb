"""
SEB Banklink Routes

Flow:
1. GET {prefix}/seb renders a self-submitting form that POSTs the signed
   IB_* fields to the bank
2. User authenticates at the bank
3. Bank POSTs (or redirects with) the signed callback to {prefix}/seb/callback
4. Callback is verified and the identity returned as an auth hash

Failures in either phase redirect to
{prefix}/failure?message=<failure code>&strategy=seb
"""

import logging
from typing import Dict
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from banklink.api.form import redirect_form_response
from banklink.core.config import BanklinkConfig, Settings, get_settings
from banklink.core.flow.controller import SebStrategy
from banklink.core.flow.models import AuthResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["banklink"])

STRATEGY_PATH = f"/{SebStrategy.name}"


def get_strategy(settings: Settings = Depends(get_settings)) -> SebStrategy:
    """Strategy bound to the current settings."""
    return SebStrategy(BanklinkConfig.from_settings(settings))


def failure_redirect(result: AuthResult, settings: Settings) -> RedirectResponse:
    """Redirect to the failure endpoint with the machine-readable code."""
    query = urlencode({"message": result.code, "strategy": SebStrategy.name})
    url = f"{settings.path_prefix.rstrip('/')}/failure?{query}"
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


def _str_params(items) -> Dict[str, str]:
    # Uploaded files are not part of the protocol
    return {key: value for key, value in items if isinstance(value, str)}


@router.get(STRATEGY_PATH, response_class=HTMLResponse)
async def request_phase(
    request: Request,
    strategy: SebStrategy = Depends(get_strategy),
    settings: Settings = Depends(get_settings),
):
    """Start authentication: render the signed redirect form."""
    result = strategy.begin()
    if not result.success:
        return failure_redirect(result, settings)

    return redirect_form_response(
        request,
        result.request.fields,
        result.request.action_url,
        title=settings.form_title,
        button_label=settings.form_button_label,
    )


async def _callback(request: Request, strategy: SebStrategy, settings: Settings):
    if request.method == "POST":
        form = await request.form()
        params = _str_params(form.multi_items())
    else:
        params = _str_params(request.query_params.multi_items())

    result = strategy.complete(params)
    if not result.success:
        return failure_redirect(result, settings)

    return JSONResponse(content=result.to_auth_hash(provider=SebStrategy.name))


@router.post(f"{STRATEGY_PATH}/callback")
async def callback_phase_post(
    request: Request,
    strategy: SebStrategy = Depends(get_strategy),
    settings: Settings = Depends(get_settings),
):
    """Handle the bank's POSTed callback."""
    return await _callback(request, strategy, settings)


@router.get(f"{STRATEGY_PATH}/callback")
async def callback_phase_get(
    request: Request,
    strategy: SebStrategy = Depends(get_strategy),
    settings: Settings = Depends(get_settings),
):
    """Handle a callback delivered as query parameters."""
    return await _callback(request, strategy, settings)


@router.get("/failure")
async def auth_failure(message: str = "unknown_error", strategy: str = SebStrategy.name):
    """Report a failed authentication."""
    logger.info(f"Authentication failure reported: strategy={strategy}, message={message}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"message": message, "strategy": strategy},
    )
