from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends, File, Form, UploadFile
from loguru import logger
from starlette.responses import JSONResponse

from ai_gateway.analysis.normalizer import normalize_patterns, normalize_ranked_patterns
from ai_gateway.analysis.parsing import (
    MalformedModelResponse,
    MalformedResponsePolicy,
    malformed_response,
    parse_model_json,
)
from ai_gateway.analysis.prompts import HARMONIC_SYSTEM, harmonic_base_prompt, harmonic_v2_prompt
from ai_gateway.api.uploads import read_image
from ai_gateway.core.errors import GatewayError
from ai_gateway.core.flags import resolve_flags
from ai_gateway.core.settings import settings
from ai_gateway.integrations.openai_responses import ModelClient, build_input, get_model_client
from ai_gateway.utils.perf import perf_span

router = APIRouter(tags=["harmonic"])

V2_DISABLED = "Harmonic patterns v2 is disabled."


def _detect(
    *,
    route: str,
    client: ModelClient,
    message: str | None,
    image: UploadFile | None,
    prompt: Callable[[str | None], str],
    normalize: Callable[[Any], Any],
    policy_setting: str,
) -> Any:
    try:
        policy = MalformedResponsePolicy.parse(policy_setting)
        attachment = read_image(image)
        if attachment is None:
            raise GatewayError(400, "Missing chart image.")

        context = (message or "").strip() or None
        text = client.respond(build_input(HARMONIC_SYSTEM, prompt(context), image=attachment), json_mode=True)

        try:
            payload = parse_model_json(text)
        except MalformedModelResponse as e:
            status, body = malformed_response(policy, e.raw)
            logger.warning("{route}: model reply is not JSON (policy={policy}, {n} chars)", route=route, policy=policy.value, n=len(e.raw))
            return JSONResponse(status_code=status, content=body)

        with perf_span("harmonic.normalize", route=route) as span:
            report = normalize(payload)
            span["candidates"] = len(report.patterns)
        return report.to_dict()
    except GatewayError:
        raise
    except Exception as e:
        logger.exception("Error en {route}: {err}", route=route, err=str(e))
        raise GatewayError(500, "Error processing the harmonic pattern request.") from e


@router.post("/harmonic-patterns")
def harmonic_patterns(
    message: str | None = Form(None),
    image: UploadFile | None = File(None),
    client: ModelClient = Depends(get_model_client),
) -> Any:
    """Up to two harmonic patterns with flat X/A/B/C/D prices and a text summary."""
    return _detect(
        route="/api/harmonic-patterns",
        client=client,
        message=message,
        image=image,
        prompt=harmonic_base_prompt,
        normalize=normalize_patterns,
        policy_setting=settings.HARMONIC_MALFORMED_POLICY,
    )


@router.post("/v2/harmonic-patterns")
def harmonic_patterns_v2(
    message: str | None = Form(None),
    image: UploadFile | None = File(None),
    client: ModelClient = Depends(get_model_client),
) -> Any:
    """Scored candidates with pixel points and Fibonacci ratios, best score first."""
    # Flag is read per request so it can be toggled without a restart.
    if not resolve_flags().harmonic_v2:
        raise GatewayError(503, V2_DISABLED)

    return _detect(
        route="/api/v2/harmonic-patterns",
        client=client,
        message=message,
        image=image,
        prompt=harmonic_v2_prompt,
        normalize=normalize_ranked_patterns,
        policy_setting=settings.HARMONIC_V2_MALFORMED_POLICY,
    )
