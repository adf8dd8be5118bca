"""Handlers used by the built-in workflows."""

from __future__ import annotations

import asyncio
import logging
import re
import time

from ..contracts import HandlerResult, WorkflowContext, utcnow
from ..handlers import WorkflowHandler

logger = logging.getLogger(__name__)

INVALID_NAME_MESSAGE = """Je n'ai pas bien compris votre nom.

Pouvez-vous me dire comment vous vous appelez ?

Par exemple : "Ahmed", "Marie", "Jean-Paul", etc."""

# greetings, questions and filler words people send instead of their name
_INVALID_NAME_PATTERNS = [
    re.compile(r"^\d+$"),
    re.compile(r"^[!@#$%^&*()]+$"),
    re.compile(
        r"^(bonjour|salut|hello|hi|hey|salam|assalam|bonsoir|bonne\s*journée)$",
        re.IGNORECASE,
    ),
    re.compile(r"^(ok|oui|non|merci|d'?accord)$", re.IGNORECASE),
    re.compile(r"\?"),
    re.compile(
        r"^(c'est|cest|qu'est|quest|quoi|comment|pourquoi|qui|quand|où|ou|est-ce|quel|quelle)\b",
        re.IGNORECASE,
    ),
    re.compile(r"(quoi|comment|pourquoi|qui|quand|où|quel|quelle)\s+", re.IGNORECASE),
]

PRODUCTS = {
    "1": "Takaful Auto",
    "2": "Takaful Santé",
    "3": "Takaful Habitation",
    "4": "Takaful Vie",
}


def clean_name(name: str) -> str:
    """Capitalise each word of ``name``."""
    return " ".join(w[:1].upper() + w[1:].lower() if w else w for w in name.split(" "))


class ValidateUserNameHandler(WorkflowHandler):
    """Reject greetings and questions given instead of a name.

    On a retry turn the new reply is checked; when chained silently the
    value collected earlier in ``source_field`` is used.
    """

    name = "validate_user_name"

    def __init__(self, source_field: str = "user_name") -> None:
        self.source_field = source_field

    async def execute(
        self, context: WorkflowContext, user_input: str = ""
    ) -> HandlerResult:
        candidate = (user_input or context.data.get(self.source_field) or "").strip()
        if not candidate:
            return HandlerResult(success=False, error="Nom manquant")

        for pattern in _INVALID_NAME_PATTERNS:
            if pattern.search(candidate):
                logger.warning(
                    f"Invalid name pattern {pattern.pattern!r} for user {context.user_id}"
                )
                return HandlerResult(success=False, error=INVALID_NAME_MESSAGE)

        cleaned = clean_name(candidate)
        logger.info(f"User name validated for user {context.user_id}: {cleaned}")
        return HandlerResult(success=True, data={self.source_field: cleaned})


class SaveUserNameHandler(WorkflowHandler):
    """Flag the collected name for saving by the conversation layer."""

    name = "save_user_name"

    def __init__(self, source_field: str = "user_name") -> None:
        self.source_field = source_field

    async def execute(
        self, context: WorkflowContext, user_input: str = ""
    ) -> HandlerResult:
        user_name = context.data.get(self.source_field)
        if not user_name:
            return HandlerResult(success=False, error="Nom manquant pour la sauvegarde")

        logger.info(
            f"User name ready to be saved for user {context.user_id} "
            f"(workflow {context.workflow_id})"
        )
        return HandlerResult(
            success=True,
            data={
                "name_validated": True,
                "save_to_database": True,
                "userName": user_name,
                "completedAt": utcnow().isoformat(),
            },
        )


class GeneratePurchaseSummaryHandler(WorkflowHandler):
    name = "generate_purchase_summary"

    async def execute(
        self, context: WorkflowContext, user_input: str = ""
    ) -> HandlerResult:
        product_type = str(context.data.get("product_type", "")).strip()
        return HandlerResult(
            success=True,
            data={"product_name": PRODUCTS.get(product_type, "Produit inconnu")},
        )


class ProcessSubscriptionHandler(WorkflowHandler):
    """Register the subscription and assign a file number."""

    name = "process_subscription"

    def __init__(self, processing_delay: float = 0.0) -> None:
        self.processing_delay = processing_delay

    async def execute(
        self, context: WorkflowContext, user_input: str = ""
    ) -> HandlerResult:
        logger.info(
            f"Processing subscription for user {context.user_id}: "
            f"product={context.data.get('product_type')}"
        )
        dossier_number = f"TKF-{int(time.time() * 1000)}-{context.user_id}"
        if self.processing_delay:
            await asyncio.sleep(self.processing_delay)

        logger.info(f"Subscription {dossier_number} processed for user {context.user_id}")
        return HandlerResult(
            success=True,
            data={
                "dossier_number": dossier_number,
                "processed_at": utcnow().isoformat(),
            },
        )
