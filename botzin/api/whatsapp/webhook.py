# START OF FILE: botzin/api/whatsapp/webhook.py

from typing import Any, Dict, List, Optional

from botzin.domain.models import InboundMessage
from botzin.shared.logger import logger

MEDIA_TYPES = {
    'imageMessage': 'image',
    'audioMessage': 'audio',
    'videoMessage': 'video',
    'documentMessage': 'document',
    'documentWithCaptionMessage': 'document',
    'stickerMessage': 'sticker',
}


def normalize_event_name(event: Optional[str]) -> str:
    """'MESSAGES_UPSERT' and 'messages.upsert' are the same event."""
    return (event or '').strip().lower().replace('_', '.')


def _media_node(content: Dict[str, Any], key: str) -> Dict[str, Any]:
    node = content.get(key) or {}
    if key == 'documentWithCaptionMessage':
        node = (node.get('message') or {}).get('documentMessage') or {}
    return node


def parse_message(data: Dict[str, Any]) -> Optional[InboundMessage]:
    key = data.get('key') or {}
    chat_id = key.get('remoteJid')
    message_id = key.get('id')
    if not chat_id or not message_id:
        logger.warning(f"Webhook message without remoteJid/id ignored: {key}")
        return None

    is_group = chat_id.endswith('@g.us')
    sender = (key.get('participant') or data.get('participant') or chat_id) if is_group else chat_id
    content = data.get('message') or {}

    text = content.get('conversation') or (content.get('extendedTextMessage') or {}).get('text') or ''
    media_type = mimetype = file_name = None
    for content_key, kind in MEDIA_TYPES.items():
        if content_key in content:
            node = _media_node(content, content_key)
            media_type = kind
            mimetype = node.get('mimetype')
            file_name = node.get('fileName')
            text = text or node.get('caption') or ''
            break

    return InboundMessage(
        message_id=message_id,
        chat_id=chat_id,
        sender=sender,
        text=text,
        is_group=is_group,
        from_me=bool(key.get('fromMe')),
        media_type=media_type,
        mimetype=mimetype,
        file_name=file_name,
        raw=data,
    )


def parse_messages(data: Any) -> List[InboundMessage]:
    items = data if isinstance(data, list) else [data]
    messages = []
    for item in items:
        if isinstance(item, dict):
            message = parse_message(item)
            if message is not None:
                messages.append(message)
    return messages


async def dispatch_event(payload: Dict[str, Any], handler, supervisor) -> str:
    """Routes one gateway webhook event. Returns the normalized event name."""
    event = normalize_event_name(payload.get('event'))
    data = payload.get('data') or {}

    if event == 'messages.upsert':
        for message in parse_messages(data):
            await handler.enqueue(message)
    elif event == 'connection.update':
        await supervisor.handle_connection_update(data.get('state'), data.get('statusReason'))
    elif event == 'qrcode.updated':
        qrcode = data.get('qrcode') or {}
        code = qrcode.get('code') or data.get('code')
        if code:
            await supervisor.handle_qr(code)
    else:
        logger.debug(f"Webhook event '{event}' ignored.")
    return event

# END OF FILE: botzin/api/whatsapp/webhook.py
