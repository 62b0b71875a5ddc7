from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile
from loguru import logger

from ai_gateway.analysis.prompts import CHART_CAPTION, MENTOR_SYSTEM, mentor_user_prompt
from ai_gateway.api.uploads import read_image
from ai_gateway.core.errors import GatewayError
from ai_gateway.integrations.openai_responses import ModelClient, build_input, get_model_client

router = APIRouter(tags=["analysis"])

NO_REPLY = "No se pudo generar respuesta."


@router.post("/analisis-ia")
def analisis_ia(
    message: str | None = Form(None),
    image: UploadFile | None = File(None),
    client: ModelClient = Depends(get_model_client),
) -> dict[str, Any]:
    """Mentor-style review of the user's written trade analysis, with an optional chart."""
    if not (message or "").strip():
        raise GatewayError(400, "Falta el mensaje.")

    try:
        attachment = read_image(image)
        items = build_input(
            MENTOR_SYSTEM,
            mentor_user_prompt(str(message)),
            image=attachment,
            image_caption=CHART_CAPTION,
        )
        reply = client.respond(items)
    except GatewayError:
        raise
    except Exception as e:
        logger.exception("Error en /api/analisis-ia: {err}", err=str(e))
        raise GatewayError(500, "Error procesando la solicitud de IA.") from e

    return {"reply": reply or NO_REPLY}
