# START OF FILE: botzin/domain/models.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

HISTORY_LIMIT = 5


@dataclass
class Message:
    role: str  # 'user' or 'assistant'
    content: str


@dataclass(frozen=True)
class Product:
    name: str
    keywords: Tuple[str, ...]
    questions: Tuple[str, str]
    campaign_messages: Dict[str, str]
    link: str
    description: str
    time_preference: str  # morning | afternoon | night | anytime

    def campaign_message(self, tone: Optional[str]) -> str:
        """Campaign copy for the tone, with the product link filled in. Neutral uses the formal copy."""
        copy = self.campaign_messages.get(tone) or self.campaign_messages['formal']
        return copy.replace('[link]', self.link)


@dataclass
class ConversationContext:
    user_id: str
    history: List[Message] = field(default_factory=list)
    step: int = 0
    product: Optional[Product] = None
    tone: Optional[str] = None

    def add_turn(self, role: str, content: str):
        self.history.append(Message(role=role, content=content))
        if len(self.history) > HISTORY_LIMIT:
            self.history.pop(0)


@dataclass
class RateCounter:
    count: int = 0
    last_reset: float = 0.0


@dataclass
class ResponseTime:
    timestamp: float
    delay: float = 0.0


@dataclass
class Lead:
    id: Optional[int]
    user_id: str
    date: str
    message: str
    followed_up: bool = False


@dataclass
class CompletionRequest:
    prompt: str
    system_prompt: str
    instruction: str = ""  # prefix for plain text-generation models; empty sends the prompt as is
    max_tokens: int = 150
    allow_intents: bool = False
    default_text: Optional[str] = None  # returned by text generation when the model echoes nothing


@dataclass
class InboundMessage:
    message_id: str
    chat_id: str
    sender: str
    text: str = ""
    is_group: bool = False
    from_me: bool = False
    media_type: Optional[str] = None  # 'audio' | 'image' | 'document' | other gateway type
    mimetype: Optional[str] = None
    file_name: Optional[str] = None
    raw: Dict = field(default_factory=dict)

    @property
    def has_media(self) -> bool:
        return self.media_type is not None

# END OF FILE: botzin/domain/models.py
