"""Reply decoders and content type based selection."""

from rabbitmq_exporter.core.decoding.bert_reply import BERTReply
from rabbitmq_exporter.core.decoding.json_reply import JSONReply
from rabbitmq_exporter.core.ports import RabbitReply

BERT_CONTENT_TYPE = "application/bert"
JSON_CONTENT_TYPE = "application/json"


def make_reply(body: bytes, content_type: str | None = None) -> RabbitReply:
    """Instantiate the reply decoder matching the negotiated content type.

    Args:
        body: Raw reply body.
        content_type: Content-Type header of the reply. Anything but
            ``application/bert`` is treated as JSON.

    Returns:
        A BERTReply or JSONReply over body.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type == BERT_CONTENT_TYPE:
        return BERTReply(body)
    return JSONReply(body)


__all__ = [
    "BERT_CONTENT_TYPE",
    "BERTReply",
    "JSON_CONTENT_TYPE",
    "JSONReply",
    "make_reply",
]
