import pytest

from convoflow.contracts import WorkflowContext
from convoflow.workflows.handlers import (
    INVALID_NAME_MESSAGE,
    GeneratePurchaseSummaryHandler,
    ProcessSubscriptionHandler,
    SaveUserNameHandler,
    ValidateUserNameHandler,
    clean_name,
)


def _context(data=None):
    return WorkflowContext(
        user_id="237690000003",
        workflow_id="name_collection",
        current_state="validate_name",
        data=data or {},
    )


def test_clean_name_capitalises_words():
    assert clean_name("aHMED ben ali") == "Ahmed Ben Ali"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "candidate",
    ["12345", "!!!", "Bonjour", "salam", "merci", "Ok", "c'est quoi ?", "qui es-tu", "comment ça va"],
)
async def test_validate_user_name_rejects_non_names(candidate):
    result = await ValidateUserNameHandler().execute(_context(), candidate)
    assert not result.success
    assert result.error == INVALID_NAME_MESSAGE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "candidate, expected",
    [("ousmane", "Ousmane"), ("Quentin", "Quentin"), ("marie claire", "Marie Claire")],
)
async def test_validate_user_name_accepts_names(candidate, expected):
    result = await ValidateUserNameHandler().execute(_context(), candidate)
    assert result.success
    assert result.data == {"user_name": expected}


@pytest.mark.asyncio
async def test_validate_user_name_falls_back_to_collected_value():
    handler = ValidateUserNameHandler()
    result = await handler.execute(_context({"user_name": "fatou"}), "")
    assert result.data == {"user_name": "Fatou"}

    missing = await handler.execute(_context(), "")
    assert not missing.success


@pytest.mark.asyncio
async def test_save_user_name():
    handler = SaveUserNameHandler(source_field="ask_name")
    result = await handler.execute(_context({"ask_name": "Ahmed"}))
    assert result.success
    assert result.output is None
    assert result.data["userName"] == "Ahmed"
    assert result.data["name_validated"] is True

    assert not (await handler.execute(_context())).success


@pytest.mark.asyncio
async def test_purchase_summary_names_product():
    handler = GeneratePurchaseSummaryHandler()
    assert (await handler.execute(_context({"product_type": "3"}))).data == {
        "product_name": "Takaful Habitation"
    }
    assert (await handler.execute(_context({"product_type": "9"}))).data == {
        "product_name": "Produit inconnu"
    }


@pytest.mark.asyncio
async def test_process_subscription_assigns_dossier_number():
    result = await ProcessSubscriptionHandler().execute(_context({"product_type": "1"}))
    assert result.success
    assert result.data["dossier_number"].startswith("TKF-")
    assert result.data["dossier_number"].endswith("-237690000003")
    assert "processed_at" in result.data
