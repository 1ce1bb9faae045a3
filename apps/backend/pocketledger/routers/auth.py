"""Auth router: sign-up, sign-in/out, email confirmation and the current user."""

from fastapi import APIRouter

from pocketledger.api.auth import handlers
from pocketledger.schemas import MeOut, SignUpResult, TokenOut

router = APIRouter(prefix="/auth", tags=["auth"])

router.add_api_route(
    "/signup",
    handlers.sign_up,
    methods=["POST"],
    response_model=SignUpResult,
    status_code=201,
)

router.add_api_route(
    "/login",
    handlers.sign_in,
    methods=["POST"],
    response_model=TokenOut,
)

router.add_api_route(
    "/logout",
    handlers.sign_out,
    methods=["POST"],
    status_code=204,
)

router.add_api_route(
    "/confirm",
    handlers.confirm,
    methods=["GET"],
    status_code=303,
)

router.add_api_route(
    "/me",
    handlers.me,
    methods=["GET"],
    response_model=MeOut,
)
