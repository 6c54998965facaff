# tests/unit/test_test_suite_schema.py

from pydantic import TypeAdapter

from testlab.schemas import test_suite as suites
from testlab.schemas.test_suite import (
    FlowTestItem,
    TestCaseData as CaseData,
    TestItem as Item,
    TestSuiteSettings as Settings,
)


def test_factories_generate_prefixed_ids():
    suite = suites.create_test_suite("Smoke", "nightly")
    request_item = suites.create_request_test_item("col:req", "Health", 0)
    flow_item = suites.create_flow_test_item("flow-1", "Login", 1)
    case = suites.create_test_case("admin", 2, CaseData(variables={"role": "admin"}))

    assert suite.id.startswith("test-suite-")
    assert suite.created_at == suite.updated_at
    assert suite.items == []
    assert request_item.id.startswith("test-item-") and request_item.type == "request"
    assert flow_item.type == "flow"
    assert case.id.startswith("test-case-")
    assert case.data.variables == {"role": "admin"}
    assert suites.create_test_case("x", 0).data == CaseData()


def test_reorder_sorts_and_renumbers_densely():
    items = [
        suites.create_request_test_item("a", "A", 7),
        suites.create_flow_test_item("b", "B", 2),
        suites.create_request_test_item("c", "C", 4),
    ]

    reordered = suites.reorder_items(items)

    assert [i.reference_id for i in reordered] == ["b", "c", "a"]
    assert [i.order for i in reordered] == [0, 1, 2]
    assert items[0].order == 7


def test_reorder_test_cases():
    cases = [suites.create_test_case(n, o) for n, o in (("late", 9), ("early", 3))]

    assert [(c.name, c.order) for c in suites.reorder_test_cases(cases)] == [
        ("early", 0),
        ("late", 1),
    ]


def test_settings_are_clamped():
    settings = Settings(concurrent_calls=0, delay_between_calls=-5)

    assert settings.concurrent_calls == 1
    assert settings.delay_between_calls == 0


def test_items_are_parsed_by_type_tag():
    item = TypeAdapter(Item).validate_python({"id": "f", "type": "flow", "reference_id": "flow-1"})

    assert isinstance(item, FlowTestItem)
