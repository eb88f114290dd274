"""
Client service - agent-scoped CRUD for insurance clients.

Every query filters on created_by; an agent can never read another agent's
clients, and a foreign id looks exactly like a missing one.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from agencyapp.models.client import Client
from agencyapp.platform.errors import NotFoundError, ValidationError
from agencyapp.utils.phone import format_phone_for_sms

logger = logging.getLogger(__name__)


class ClientService:
    """Reads and writes clients owned by one agent."""

    def __init__(self, db: Session, user_id: str):
        if not user_id:
            raise ValueError("user_id is required")
        self.db = db
        self.user_id = user_id

    def list_clients(self, limit: int = 100, offset: int = 0) -> List[Client]:
        return (
            self.db.query(Client)
            .filter(Client.created_by == self.user_id)
            .order_by(Client.created_at.desc(), Client.name)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_client(self, client_id: str) -> Client:
        """
        Fetch one of the agent's clients.

        Raises:
            NotFoundError: If no client with that id belongs to the agent
        """
        client = (
            self.db.query(Client)
            .filter(Client.id == client_id, Client.created_by == self.user_id)
            .first()
        )
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def create_client(
        self,
        name: str,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Client:
        """
        Create a client owned by the agent.

        Raises:
            ValidationError: Blank name, or a phone number with no digits in it
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Client name is required", details={"field": "name"})

        phone = None
        if phone_number and phone_number.strip():
            phone = format_phone_for_sms(phone_number)
            if not phone:
                raise ValidationError(
                    "Phone number must contain digits",
                    details={"field": "phone_number", "value": phone_number},
                )

        client = Client(
            created_by=self.user_id,
            name=name,
            email=email,
            phone_number=phone,
            address=address,
        )
        self.db.add(client)
        self.db.commit()

        logger.info("Client created", extra={"user_id": self.user_id, "client_id": client.id})
        return client
