from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, Form
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_interpreter, get_session
from app.services.command_service import CommandInterpreter, InboundMessage

router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])


def twiml(message: str | None = None) -> Response:
    """Wrap a reply in the TwiML envelope Twilio expects from a messaging webhook."""
    inner = f"<Message>{escape(message)}</Message>" if message else ""
    return Response(content=f"<Response>{inner}</Response>", media_type="text/xml")


@router.post("/webhook")
async def whatsapp_webhook(
    body: str = Form("", alias="Body"),
    sender: str = Form("", alias="From"),
    media_url: str | None = Form(None, alias="MediaUrl0"),
    session: AsyncSession = Depends(get_session),
    interpreter: CommandInterpreter = Depends(get_interpreter),
) -> Response:
    if not body.strip():
        return twiml()
    reply = await interpreter.handle(session, InboundMessage(body=body, sender=sender, media_url=media_url))
    return twiml(reply)
