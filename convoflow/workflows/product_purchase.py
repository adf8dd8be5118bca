"""Guided subscription to a Takaful insurance product."""

from __future__ import annotations

from ..definitions import (
    State,
    StateType,
    Transition,
    ValidationRule,
    WorkflowDefinition,
)

YES = ("oui", "Oui", "OUI", "yes", "Yes", "YES")
NO = ("non", "Non", "NON", "no", "No", "NO")
YES_NO_PATTERN = "^(" + "|".join(YES + NO) + ")$"
YES_NO_MESSAGE = "Veuillez répondre par *Oui* ou *Non*"


def _answered(field: str, answers: tuple[str, ...]) -> str:
    return f"data.{field} in {answers!r}"


WELCOME = """Parfait ! Je vais vous guider dans la souscription à un produit Takaful.

Ce processus ne prendra que quelques minutes.

Êtes-vous prêt(e) à commencer ?
Répondez par *Oui* pour continuer ou *Non* pour annuler."""

SELECT_PRODUCT = """Quel produit Takaful souhaitez-vous souscrire ?

1️⃣ *Takaful Auto* - Assurance automobile conforme à la Charia
2️⃣ *Takaful Santé* - Couverture santé et hospitalisation
3️⃣ *Takaful Habitation* - Protection de votre domicile
4️⃣ *Takaful Vie* - Protection de votre famille

Répondez avec le numéro (1, 2, 3 ou 4)"""

SUMMARY = """📋 *RÉCAPITULATIF DE VOTRE DEMANDE*

✅ Produit: {{product_name}}
👤 Nom: {{full_name}}
📱 Téléphone: {{phone_number}}
📧 Email: {{email}}
📍 Adresse: {{address}}

Confirmez-vous ces informations ?
Répondez par *Oui* pour confirmer ou *Non* pour recommencer"""

SUCCESS = """🎉 *SOUSCRIPTION ENREGISTRÉE AVEC SUCCÈS !*

Merci *{{full_name}}* pour votre confiance !

📄 Votre numéro de dossier est : {{dossier_number}}
Un conseiller ROI Takaful vous contactera dans les *24 heures* pour finaliser votre dossier."""

CANCELLED = """❌ *Souscription annulée*

Aucun problème ! Si vous changez d'avis, n'hésitez pas à me recontacter."""

product_purchase_workflow = WorkflowDefinition(
    id="product_purchase",
    name="Souscription Produit Takaful",
    description="Workflow guidé pour la souscription à un produit d'assurance Takaful",
    initial_state="await_confirmation",
    states=[
        State(
            id="await_confirmation",
            name="Attente de confirmation",
            type=StateType.DECISION,
            prompt=WELCOME,
            validation=[
                ValidationRule(
                    type="regex",
                    field="start_confirmation",
                    pattern=YES_NO_PATTERN,
                    message=YES_NO_MESSAGE,
                )
            ],
        ),
        State(
            id="select_product",
            name="Sélection du produit",
            type=StateType.INPUT,
            prompt=SELECT_PRODUCT,
            validation=[
                ValidationRule(
                    type="regex",
                    field="product_type",
                    pattern=r"^[1-4]$",
                    message="Veuillez choisir un numéro entre 1 et 4",
                )
            ],
            next_state="collect_full_name",
        ),
        State(
            id="collect_full_name",
            name="Collecte nom complet",
            type=StateType.INPUT,
            prompt="Excellent choix !\n\nPour continuer, quel est votre *nom complet* ?",
            validation=[
                ValidationRule(
                    type="regex",
                    field="full_name",
                    pattern=r"^\s*\S.{1,98}\S\s*$",
                    message="Veuillez entrer votre nom complet (minimum 3 caractères)",
                )
            ],
            next_state="collect_phone",
        ),
        State(
            id="collect_phone",
            name="Collecte téléphone",
            type=StateType.INPUT,
            prompt=(
                "Merci *{{full_name}}* !\n\nQuel est votre *numéro de téléphone* ?\n"
                "(Format: +237XXXXXXXXX ou 6XXXXXXXX)"
            ),
            validation=[
                ValidationRule(
                    type="regex",
                    field="phone_number",
                    pattern=r"^(\+237)?6\d{8}$",
                    message=(
                        "Veuillez entrer un numéro de téléphone valide "
                        "(ex: +237691100575 ou 691100575)"
                    ),
                )
            ],
            next_state="collect_email",
        ),
        State(
            id="collect_email",
            name="Collecte email",
            type=StateType.INPUT,
            prompt="Quelle est votre *adresse email* ?",
            validation=[
                ValidationRule(
                    type="regex",
                    field="email",
                    pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
                    message="Veuillez entrer une adresse email valide",
                )
            ],
            next_state="collect_address",
        ),
        State(
            id="collect_address",
            name="Collecte adresse",
            type=StateType.INPUT,
            prompt="Quelle est votre *adresse complète* ?\n(Ville, quartier, rue)",
            validation=[
                ValidationRule(
                    type="regex",
                    field="address",
                    pattern=r"^.{10,200}$",
                    message="Veuillez entrer votre adresse complète (minimum 10 caractères)",
                )
            ],
            next_state="generate_summary",
        ),
        State(
            id="generate_summary",
            name="Génération du récapitulatif",
            type=StateType.PROCESSING,
            handler="generate_purchase_summary",
            next_state="final_confirmation",
        ),
        State(
            id="final_confirmation",
            name="Confirmation finale",
            type=StateType.DECISION,
            prompt=SUMMARY,
            validation=[
                ValidationRule(
                    type="regex",
                    field="final_confirmation",
                    pattern=YES_NO_PATTERN,
                    message=YES_NO_MESSAGE,
                )
            ],
        ),
        State(
            id="process_subscription",
            name="Traitement de la souscription",
            type=StateType.PROCESSING,
            handler="process_subscription",
            next_state="success",
        ),
        State(
            id="success",
            name="Souscription réussie",
            type=StateType.OUTPUT,
            prompt=SUCCESS,
            next_state="completed",
        ),
        State(
            id="cancellation_notice",
            name="Annulation",
            type=StateType.OUTPUT,
            prompt=CANCELLED,
            next_state="cancelled",
        ),
        State(id="completed", name="Workflow terminé", type=StateType.COMPLETED),
        State(id="cancelled", name="Workflow annulé", type=StateType.CANCELLED),
    ],
    transitions=[
        Transition(
            from_state="await_confirmation",
            to="select_product",
            condition=_answered("start_confirmation", YES),
            priority=10,
        ),
        Transition(
            from_state="await_confirmation",
            to="cancellation_notice",
            condition=_answered("start_confirmation", NO),
            priority=10,
        ),
        Transition(
            from_state="final_confirmation",
            to="process_subscription",
            condition=_answered("final_confirmation", YES),
            priority=10,
        ),
        Transition(
            from_state="final_confirmation",
            to="select_product",
            condition=_answered("final_confirmation", NO),
            priority=10,
        ),
    ],
    metadata={
        "category": "sales",
        "required_data": ["product_type", "full_name", "phone_number", "email", "address"],
    },
)
