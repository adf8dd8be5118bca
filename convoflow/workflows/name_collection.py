"""Onboarding workflow collecting the name the user wants to be called by."""

from __future__ import annotations

from ..definitions import State, StateType, ValidationRule, WorkflowDefinition

GREETING = """Salam 👋 Je suis *ISSA*, votre compagnon digital chez *ROI Takaful* 🌙

Je suis là pour vous écouter, vous guider et répondre à vos questions sur nos produits d'assurance conformes à la Charia.

Avant de commencer, comment puis-je vous appeler ? ✍️"""

WELCOME = """Ravi de faire votre connaissance *{{user_name}}* ! 🤝

Bienvenue dans la famille ROI Takaful, où l'assurance rime avec transparence et conformité à la Charia islamique.

📋 Je peux vous informer sur nos produits Takaful (Auto, Santé, Habitation, Vie), vous accompagner dans vos souscriptions et répondre à vos questions.

Comment puis-je vous aider aujourd'hui ?"""

name_collection_workflow = WorkflowDefinition(
    id="name_collection",
    name="Collecte du Nom (Onboarding)",
    description="Workflow de bienvenue pour collecter le nom de l'utilisateur",
    initial_state="await_name_input",
    states=[
        State(
            id="await_name_input",
            name="Attente du nom",
            type=StateType.INPUT,
            prompt=GREETING,
            validation=[
                ValidationRule(
                    type="required",
                    field="user_name",
                    message="Veuillez entrer un nom valide",
                ),
                ValidationRule(
                    type="regex",
                    field="user_name",
                    pattern=r"^.{2,50}$",
                    message="Veuillez entrer un nom valide (minimum 2 caractères, maximum 50)",
                ),
            ],
            next_state="validate_name",
        ),
        State(
            id="validate_name",
            name="Validation du nom",
            type=StateType.PROCESSING,
            handler="validate_user_name",
            next_state="save_name",
        ),
        State(
            id="save_name",
            name="Sauvegarde du nom",
            type=StateType.PROCESSING,
            handler="save_user_name",
            next_state="welcome_message",
        ),
        State(
            id="welcome_message",
            name="Message de bienvenue personnalisé",
            type=StateType.OUTPUT,
            prompt=WELCOME,
            next_state="completed",
        ),
        State(id="completed", name="Onboarding terminé", type=StateType.COMPLETED),
    ],
    metadata={"category": "onboarding", "mandatory": True, "required_data": ["user_name"]},
)
