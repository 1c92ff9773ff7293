"""Sample widget form and its submission handler."""

import html

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from src.api.dependencies import extract_challenge, get_verifier
from src.config.constants import RECAPTCHA_RESPONSE_FIELD, RECAPTCHA_SCRIPT_URL
from src.config.settings import Settings, get_settings
from src.services.verification.verifier import Verifier

router = APIRouter()

FORM_TEMPLATE = """<html>
    <head>
        <script src='{script_url}'></script>
    </head>
    <body>
        <form action="/submit" method="post">
            <div class="g-recaptcha" data-sitekey="{site_key}"></div>
            <input type="submit">
        </form>
    </body>
</html>
"""


def render_form(site_key: str) -> str:
    """Render the widget form for a site key."""
    return FORM_TEMPLATE.format(
        script_url=RECAPTCHA_SCRIPT_URL,
        site_key=html.escape(site_key, quote=True),
    )


@router.get("/", response_class=HTMLResponse)
async def index(settings: Settings = Depends(get_settings)) -> str:
    """Serve the widget form."""
    return render_form(settings.recaptcha_site_key)


@router.post("/submit", response_class=PlainTextResponse)
async def submit(
    request: Request,
    token: str = Form("", alias=RECAPTCHA_RESPONSE_FIELD),
    verifier: Verifier = Depends(get_verifier),
) -> str:
    """Verify the submitted widget response."""
    result = await verifier.verify_challenge_async(extract_challenge(request, token))
    if result:
        return "Valid"
    return "Invalid! These errors ocurred: [" + " ".join(result.errors) + "]"
