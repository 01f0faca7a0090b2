"""Tests for the category and workspace operations of the OTCS class."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from pyotcs import OTCS, BusinessPropertiesError, OTCSSettings
from pyotcs.category import (
    BusinessPropertiesResult,
    CategoryDefinition,
    CategoryWithValues,
    NodeCategories,
    ScalarAttribute,
    SetAttribute,
    WorkspaceMetadataForm,
)

REST_URL = "http://otcs.example.com:8080/cs/cs/api"


def _response(status_code: int = 200, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    return response


# ---------------------------------------------------------------------------
# Configuration and transport
# ---------------------------------------------------------------------------


def test_config_urls(otcs: OTCS) -> None:
    config = otcs.config()

    assert config["restUrl"] == REST_URL
    assert config["nodesUrlv2"] == REST_URL + "/v2/nodes"
    assert config["nodesFormUrl"] == REST_URL + "/v1/forms/nodes"
    assert config["businessWorkspacesFormUrl"] == REST_URL + "/v2/forms/businessworkspaces"


def test_from_settings() -> None:
    settings = OTCSSettings(
        _env_file=None,
        url="https://otcs.example.com",
        base_path="/cs/cs.exe",
        username="tester",
        password="secret",
    )

    otcs = OTCS.from_settings(settings)

    assert otcs.config()["baseUrl"] == "https://otcs.example.com"
    assert otcs.config()["restUrl"] == "https://otcs.example.com/cs/cs.exe/api"
    assert otcs.credentials() == {"username": "tester", "password": "secret"}
    assert otcs.otcs_ticket() is None


def test_from_settings_applies_log_level() -> None:
    settings = OTCSSettings(_env_file=None, loglevel="DEBUG")

    otcs = OTCS.from_settings(settings, logger=logging.getLogger("pyotcs_test"))

    assert otcs.logger.name == "pyotcs_test.otcs"
    assert otcs.logger.level == logging.DEBUG
    assert otcs.logger.isEnabledFor(logging.DEBUG)


def test_authenticate_stores_ticket() -> None:
    otcs = OTCS(protocol="http", hostname="otcs.example.com", port=8080, username="admin", password="secret")

    with patch("pyotcs.otcs.requests.post", return_value=_response(text='{"ticket": "abc"}')) as post:
        assert otcs.authenticate() == "abc"

    assert otcs.otcs_ticket() == "abc"
    assert post.call_args.kwargs["url"] == REST_URL + "/v1/auth"
    assert post.call_args.kwargs["data"] == {"username": "admin", "password": "secret"}


def test_authenticate_keeps_existing_ticket(otcs: OTCS) -> None:
    with patch("pyotcs.otcs.requests.post") as post:
        assert otcs.authenticate() == "test-ticket"

    post.assert_not_called()


def test_do_request_sends_ticket_and_form_pairs(otcs: OTCS) -> None:
    pairs = [("10_4", "a"), ("10_4", "b")]

    with patch("pyotcs.otcs.requests.request", return_value=_response(text='{"results": {}}')) as request:
        response = otcs.do_request(url=REST_URL + "/x", method="PUT", headers=otcs.request_form_header(), data=pairs)

    assert response == {"results": {}}
    assert request.call_args.kwargs["data"] == pairs
    assert request.call_args.kwargs["headers"]["OTCSTicket"] == "test-ticket"


def test_do_request_empty_body_is_success(otcs: OTCS) -> None:
    with patch("pyotcs.otcs.requests.request", return_value=_response(text="")):
        assert otcs.do_request(url=REST_URL + "/x", method="PUT") == {}


def test_do_request_error_returns_none(otcs: OTCS) -> None:
    with patch("pyotcs.otcs.requests.request", return_value=_response(status_code=404, text="not found")):
        assert otcs.do_request(url=REST_URL + "/x", failure_message="Failed") is None


def test_do_request_reauthenticates_on_401(otcs: OTCS) -> None:
    def renew_ticket(revalidate: bool = False) -> str:
        otcs.set_otcs_ticket("new-ticket")
        return "new-ticket"

    responses = [_response(status_code=401), _response(text='{"ok": true}')]

    with (
        patch("pyotcs.otcs.requests.request", side_effect=responses) as request,
        patch.object(otcs, "authenticate", side_effect=renew_ticket) as authenticate,
    ):
        assert otcs.do_request(url=REST_URL + "/x") == {"ok": True}

    authenticate.assert_called_once_with(revalidate=True)
    assert request.call_count == 2
    assert request.call_args.kwargs["headers"]["OTCSTicket"] == "new-ticket"


def test_do_request_without_ticket() -> None:
    otcs = OTCS(protocol="http", hostname="otcs.example.com", port=8080)

    with patch("pyotcs.otcs.requests.request") as request:
        assert otcs.do_request(url=REST_URL + "/x") is None

    request.assert_not_called()


# ---------------------------------------------------------------------------
# Category operations
# ---------------------------------------------------------------------------


def test_get_categories(otcs: OTCS) -> None:
    response = {"results": [{"data": {"categories": {"42": {"name": "Invoice", "amount": 100}}}}]}

    with patch.object(otcs, "do_request", return_value=response) as do_request:
        node_categories = otcs.get_categories(node_id=4711, include_metadata=True)

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/nodes/4711/categories?metadata"
    assert do_request.call_args.kwargs["method"] == "GET"
    assert node_categories.node_id == 4711
    assert [category.name for category in node_categories.categories] == ["Invoice"]


def test_get_categories_failure_is_empty(otcs: OTCS) -> None:
    with patch.object(otcs, "do_request", return_value=None):
        assert otcs.get_categories(node_id=4711) == NodeCategories(node_id=4711, categories=[])


def test_get_category(otcs: OTCS) -> None:
    response = {"results": [{"data": {"categories": {"42": {"name": "Invoice", "amount": 100}}}}]}

    with patch.object(otcs, "do_request", return_value=response) as do_request:
        category = otcs.get_category(node_id=4711, category_id=42)

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/nodes/4711/categories/42/"
    assert category.id == 42


def test_add_category(otcs: OTCS) -> None:
    with patch.object(otcs, "do_request", return_value={}) as do_request:
        assert otcs.add_category(node_id=4711, category_id=11150, values={"2": [{"1": "A"}], "3": None}) == {}

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/nodes/4711/categories"
    assert do_request.call_args.kwargs["method"] == "POST"
    assert do_request.call_args.kwargs["data"] == [("category_id", "11150"), ("11150_2_1_1", "A")]


def test_update_category(otcs: OTCS) -> None:
    with patch.object(otcs, "do_request", return_value={}) as do_request:
        otcs.update_category(node_id=4711, category_id=11150, values={"11150_28": "x", "4": ["a", "b"]})

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/nodes/4711/categories/11150/"
    assert do_request.call_args.kwargs["method"] == "PUT"
    assert do_request.call_args.kwargs["data"] == [("11150_28", "x"), ("11150_4", "a"), ("11150_4", "b")]


def test_update_category_without_values(otcs: OTCS) -> None:
    with patch.object(otcs, "do_request") as do_request:
        assert otcs.update_category(node_id=4711, category_id=11150, values={"1": None}) is None

    do_request.assert_not_called()


def test_remove_category(otcs: OTCS) -> None:
    with patch.object(otcs, "do_request", return_value={}) as do_request:
        otcs.remove_category(node_id=4711, category_id=11150)

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/nodes/4711/categories/11150/"
    assert do_request.call_args.kwargs["method"] == "DELETE"


@pytest.mark.parametrize("operation", ["create", "update"])
def test_get_category_forms(otcs: OTCS, operation: str, category_form_response: dict) -> None:
    with patch.object(otcs, "do_request", return_value=category_form_response) as do_request:
        if operation == "create":
            definition = otcs.get_category_create_form(node_id=4711, category_id=11150)
        else:
            definition = otcs.get_category_update_form(node_id=4711, category_id=11150)

    assert do_request.call_args.kwargs["url"] == (
        REST_URL + "/v1/forms/nodes/categories/{}?id=4711&category_id=11150".format(operation)
    )
    assert definition.category_id == 11150
    assert len(definition.attributes) == 5


def test_get_category_form_failure(otcs: OTCS) -> None:
    with patch.object(otcs, "do_request", return_value=None):
        assert otcs.get_category_create_form(node_id=4711, category_id=11150) is None


def test_get_workspace_metadata_form(otcs: OTCS) -> None:
    response = {"forms": [{"data": {"id": 10, "name": "Contract"}, "schema": {"properties": {"10_1": {}}}}]}

    with patch.object(otcs, "do_request", return_value=response) as do_request:
        form = otcs.get_workspace_metadata_form(workspace_id=4711)

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/forms/businessworkspaces/4711/metadata/update"
    assert form.categories[0].category_name == "Contract"


# ---------------------------------------------------------------------------
# Name map
# ---------------------------------------------------------------------------


def test_name_map_from_workspace_form(otcs: OTCS) -> None:
    form = WorkspaceMetadataForm(
        workspace_id=4711,
        categories=[
            CategoryDefinition(
                category_id=10,
                category_name="Contract",
                attributes=[
                    ScalarAttribute(key="10_3", name="Due Date"),
                    SetAttribute(
                        key="10_7",
                        name="Lines",
                        children=[ScalarAttribute(key="10_7_1_2", name="Line Amount")],
                    ),
                ],
            ),
        ],
    )

    with (
        patch.object(otcs, "get_workspace_metadata_form", return_value=form),
        patch.object(otcs, "get_categories") as get_categories,
    ):
        index = otcs.build_category_name_map(node_id=4711)

    assert index == {"duedate": "10_3", "lines": "10_7", "lineamount": "10_7_1_2"}
    get_categories.assert_not_called()


def test_name_map_falls_back_to_category_forms(otcs: OTCS) -> None:
    node_categories = NodeCategories(
        node_id=4711,
        categories=[CategoryWithValues(id=category_id, name="C{}".format(category_id)) for category_id in (10, 20, 30)],
    )

    def create_form(node_id: int, category_id: int) -> CategoryDefinition | None:
        if category_id == 20:
            return None
        if category_id == 30:
            raise requests.exceptions.ConnectionError("broken")
        return CategoryDefinition(
            category_id=category_id,
            category_name="A",
            attributes=[ScalarAttribute(key="10_1", name="Status")],
        )

    with (
        patch.object(otcs, "get_workspace_metadata_form", return_value=None),
        patch.object(otcs, "get_categories", return_value=node_categories),
        patch.object(otcs, "get_category_create_form", side_effect=create_form) as get_form,
    ):
        index = otcs.build_category_name_map(node_id=4711)

    assert index == {"status": "10_1"}
    assert get_form.call_count == 3


def test_name_map_falls_back_when_workspace_form_is_invalid(otcs: OTCS) -> None:
    node_categories = NodeCategories(
        node_id=4711,
        categories=[CategoryWithValues(id=category_id, name="C{}".format(category_id)) for category_id in (10, 20)],
    )

    def create_form(node_id: int, category_id: int) -> CategoryDefinition:
        if category_id == 10:
            raise ValueError("unexpected form content")
        return CategoryDefinition(
            category_id=category_id,
            category_name="B",
            attributes=[ScalarAttribute(key="20_3", name="Due Date")],
        )

    with (
        patch.object(otcs, "get_workspace_metadata_form", side_effect=ValueError("invalid category id")),
        patch.object(otcs, "get_categories", return_value=node_categories),
        patch.object(otcs, "get_category_create_form", side_effect=create_form) as get_form,
    ):
        index = otcs.build_category_name_map(node_id=4711)

    assert index == {"duedate": "20_3"}
    assert get_form.call_count == 2


def test_name_map_with_malformed_workspace_form_response(otcs: OTCS) -> None:
    response = {
        "forms": [
            {
                "data": {"id": "abc", "name": 42},
                "schema": {"properties": {"10_3": {"type": ["string", "null"], "maxLength": "abc"}}},
                "options": {"fields": {"10_3": {"label": "Due Date", "helper": {"text": "when"}}}},
            },
        ],
    }

    with (
        patch.object(otcs, "do_request", return_value=response),
        patch.object(otcs, "get_categories") as get_categories,
    ):
        index = otcs.build_category_name_map(node_id=4711)

    assert index == {"duedate": "10_3"}
    get_categories.assert_not_called()


def test_name_map_empty_when_nothing_is_readable(otcs: OTCS) -> None:
    with (
        patch.object(otcs, "get_workspace_metadata_form", side_effect=requests.exceptions.ConnectionError("down")),
        patch.object(otcs, "get_categories", return_value=NodeCategories(node_id=4711)),
    ):
        assert otcs.build_category_name_map(node_id=4711) == {}


# ---------------------------------------------------------------------------
# Business properties
# ---------------------------------------------------------------------------


def test_flattened_keys_are_grouped_by_category(otcs: OTCS) -> None:
    properties = {"11150_28": "a", "11150_2_1_6": "b", "22_1": "c"}

    with (
        patch.object(otcs, "update_category", return_value={}) as update_category,
        patch.object(otcs, "build_category_name_map") as build_category_name_map,
    ):
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties=properties)

    build_category_name_map.assert_not_called()
    assert result == BusinessPropertiesResult(updated=[11150, 22])
    update_category.assert_any_call(node_id=4711, category_id=11150, values={"11150_28": "a", "11150_2_1_6": "b"})
    update_category.assert_any_call(node_id=4711, category_id=22, values={"22_1": "c"})


def test_category_id_with_values(otcs: OTCS) -> None:
    properties = {"11150": {"28": "a", "2": [{"6": "x"}]}}

    with patch.object(otcs, "update_category", return_value={}) as update_category:
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties=properties)

    assert result.updated == [11150]
    update_category.assert_called_once_with(
        node_id=4711,
        category_id=11150,
        values={"28": "a", "2": [{"6": "x"}]},
    )


def test_category_id_with_flattened_keys_gets_prefixed(otcs: OTCS) -> None:
    properties = {"11150": {"2_1_6": "row value", "11150_28": "kept", "3": "plain"}}

    with patch.object(otcs, "do_request", return_value={}) as do_request:
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties=properties)

    assert result.updated == [11150]
    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/nodes/4711/categories/11150/"
    assert do_request.call_args.kwargs["data"] == [
        ("11150_2_1_6", "row value"),
        ("11150_28", "kept"),
        ("11150_3", "plain"),
    ]


def test_attribute_names_are_resolved(otcs: OTCS) -> None:
    properties = {"Equipment Number": "E-1", "Unknown Field": "x"}

    with (
        patch.object(otcs, "build_category_name_map", return_value={"equipmentnumber": "10596_2_1_6"}),
        patch.object(otcs, "update_category", return_value={}) as update_category,
    ):
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties=properties)

    update_category.assert_called_once_with(node_id=4711, category_id=10596, values={"10596_2_1_6": "E-1"})
    assert result == BusinessPropertiesResult(updated=[10596], skipped=["Unknown Field"])


def test_partial_failure_is_reported(otcs: OTCS) -> None:
    properties = {"10_1": "a", "20_1": "b"}

    with patch.object(otcs, "update_category", side_effect=[None, {}]):
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties=properties)

    assert result.updated == [20]
    assert result.failed == [10]


def test_total_failure_raises(otcs: OTCS) -> None:
    properties = {"10_1": "a", "20_1": "b"}

    with (
        patch.object(otcs, "update_category", side_effect=[None, requests.exceptions.ConnectionError("down")]),
        pytest.raises(BusinessPropertiesError) as error,
    ):
        otcs.apply_workspace_business_properties(workspace_id=4711, properties=properties)

    assert error.value.failed == [10, 20]
    assert "10, 20" in str(error.value)


def test_only_unresolved_names_do_not_raise(otcs: OTCS) -> None:
    with (
        patch.object(otcs, "build_category_name_map", return_value={}),
        patch.object(otcs, "update_category") as update_category,
    ):
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties={"Nope": 1})

    update_category.assert_not_called()
    assert result == BusinessPropertiesResult(skipped=["Nope"])


def test_category_with_only_empty_values_is_left_unchanged(otcs: OTCS) -> None:
    with patch.object(otcs, "update_category") as update_category:
        result = otcs.apply_workspace_business_properties(workspace_id=4711, properties={"10_1": None})

    update_category.assert_not_called()
    assert result == BusinessPropertiesResult()


def test_update_workspace_metadata(otcs: OTCS) -> None:
    with patch.object(otcs, "update_category", return_value={}):
        result = otcs.update_workspace_metadata(workspace_id=4711, values={"10_1": "a"})

    assert result.updated == [10]


def test_create_workspace(otcs: OTCS) -> None:
    response = {"results": {"data": {"properties": {"id": 999, "name": "Pump 1"}}}}

    with (
        patch.object(otcs, "do_request", return_value=response) as do_request,
        patch.object(
            otcs,
            "apply_workspace_business_properties",
            return_value=BusinessPropertiesResult(updated=[10]),
        ) as apply_properties,
    ):
        created = otcs.create_workspace(
            template_id=5,
            name="Pump 1",
            parent_id=2000,
            business_properties={"10_1": "a"},
        )

    assert do_request.call_args.kwargs["url"] == REST_URL + "/v2/businessworkspaces"
    assert do_request.call_args.kwargs["data"] == [("template_id", "5"), ("name", "Pump 1"), ("parent_id", "2000")]
    apply_properties.assert_called_once_with(workspace_id=999, properties={"10_1": "a"})
    assert created["business_properties"] == {"updated": [10], "failed": [], "skipped": []}


def test_create_workspace_failure(otcs: OTCS) -> None:
    with (
        patch.object(otcs, "do_request", return_value=None),
        patch.object(otcs, "apply_workspace_business_properties") as apply_properties,
    ):
        assert otcs.create_workspace(template_id=5, name="Pump 1", business_properties={"10_1": "a"}) is None

    apply_properties.assert_not_called()
