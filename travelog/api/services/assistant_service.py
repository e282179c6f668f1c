# travelog/api/services/assistant_service.py
"""Conversational trip assistant."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from travelog.api.database import AssistantConversation, Database
from travelog.api.errors import ConfigurationError, MalformedModelOutput, ValidationError
from travelog.api.extraction import extract, find_framed, strip_framed
from travelog.api.llm import Message, ModelClient
from travelog.api.models import as_dict, as_list, as_str
from travelog.api.prompts import ASSISTANT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10
STORED_HISTORY = 8
CHAT_ROLES = ("user", "assistant")


def _clean_history(history: Any) -> List[Message]:
    messages = []
    for item in as_list(history):
        item = as_dict(item)
        role, content = item.get("role"), as_str(item.get("content"))
        if role in CHAT_ROLES and content:
            messages.append({"role": role, "content": content})
    return messages


class AssistantService:
    """Answers chat messages and picks up trip data the model frames."""

    def __init__(self, model_client: Optional[ModelClient], db: Optional[Database] = None, model: Optional[str] = None):
        self.model_client = model_client
        self.db = db
        self.model = model

    def _stored_history(self, user_id: str) -> List[Message]:
        with self.db.session_scope() as session:
            query = (
                select(AssistantConversation)
                .where(AssistantConversation.user_id == user_id)
                .order_by(AssistantConversation.updated_at.desc())
                .limit(1)
            )
            conversation = session.scalars(query).first()
            return _clean_history(conversation.messages) if conversation else []

    def _save_history(self, user_id: str, history: List[Message], trip_data: Any) -> None:
        with self.db.session_scope() as session:
            query = select(AssistantConversation).where(AssistantConversation.user_id == user_id)
            conversation = session.scalars(query).first()
            if conversation is None:
                conversation = AssistantConversation(user_id=user_id)
                session.add(conversation)
            conversation.messages = history
            if trip_data is not None:
                conversation.trip_data = trip_data
            conversation.updated_at = datetime.utcnow()

    def chat(self, data: Dict[str, Any], user_id: Optional[str] = None) -> Dict[str, Any]:
        """Send one user message and return the reply.

        Args:
            data: Request body with ``message`` and an optional
                ``conversationHistory`` list of ``{role, content}``
            user_id: Signed-in user, or None for anonymous chat

        Returns:
            Dict with ``message`` (reply without framed data), ``tripData``
            (the framed payload or None), ``hasAuth`` and the updated
            ``conversationHistory``
        """
        data = as_dict(data)
        message = as_str(data.get("message"))
        if not message:
            raise ValidationError("Message is required")
        if self.model_client is None:
            raise ConfigurationError()

        if isinstance(data.get("conversationHistory"), list):
            history = _clean_history(data["conversationHistory"])
        elif user_id and self.db is not None:
            history = self._stored_history(user_id)
        else:
            history = []

        messages: List[Message] = [{"role": "system", "content": ASSISTANT_SYSTEM_PROMPT}]
        messages.extend(history[-HISTORY_WINDOW:])
        messages.append({"role": "user", "content": message})

        reply = self.model_client.invoke(messages, model=self.model, temperature=0.7, max_tokens=1000)

        trip_data = None
        if find_framed(reply) is not None:
            try:
                trip_data = extract(reply)
            except MalformedModelOutput:
                logger.warning("Assistant reply carried unparsable trip data")

        turn = [
            {"role": "user", "content": message},
            {"role": "assistant", "content": reply},
        ]
        if user_id and self.db is not None:
            self._save_history(user_id, history[-STORED_HISTORY:] + turn, trip_data)

        return {
            "message": strip_framed(reply),
            "tripData": trip_data,
            "hasAuth": user_id is not None,
            "conversationHistory": history + turn,
        }


__all__ = ["AssistantService"]
