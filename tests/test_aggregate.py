from decimal import Decimal

from premiums.aggregate import AgentAggregate, aggregate_by_agent
from premiums.filters import filter_by_month

from conftest import prepared


def test_january_scenario() -> None:
    rows = prepared(
        "1/5/2025,doe,jane,A,$100.00,A1",
        "1/20/2025,Doe,Jane,B,$50,A1",
    )
    january = filter_by_month(rows, 2025, 1)
    [agent] = aggregate_by_agent(january.rows)
    assert agent.agent_name == "Jane Doe"
    assert agent.monthly_premium == 150
    assert agent.annualized_premium == 1800
    assert agent.products == ["A", "B"]


def test_names_group_case_insensitively() -> None:
    rows = prepared(
        "1/5/2025,smith,john,A,$10,A1",
        "1/6/2025,SMITH,JOHN,A,$20,A1",
        "1/7/2025,Smith,John,A,$30,A1",
    )
    [agent] = aggregate_by_agent(rows)
    assert agent.agent_name == "John Smith"
    assert agent.monthly_premium == 60
    assert agent.product_counts == {"A": 3}


def test_unparseable_premium_counts_as_zero() -> None:
    rows = prepared(
        "1/5/2025,Doe,Jane,A,$100,A1",
        "1/6/2025,Doe,Jane,B,N/A,A1",
    )
    [agent] = aggregate_by_agent(rows)
    assert agent.monthly_premium == 100
    assert agent.products == ["A", "B"]
    assert agent.product_counts == {"A": 1, "B": 1}


def test_rows_without_name_are_ignored() -> None:
    rows = prepared(
        "1/5/2025,,,A,$500,A1",
        "1/5/2025,Doe,Jane,A,$10,A1",
    )
    aggs = aggregate_by_agent(rows)
    assert [a.agent_name for a in aggs] == ["Jane Doe"]
    assert aggs[0].monthly_premium == 10


def test_annualized_is_exactly_twelve_times_monthly() -> None:
    rows = prepared(
        "1/5/2025,Doe,Jane,A,$0.10,A1",
        "1/5/2025,Doe,Jane,A,$0.20,A1",
        "1/5/2025,Doe,Jane,A,$33.33,A1",
        "1/5/2025,Lee,Ann,A,$19.99,A2",
    )
    for agent in aggregate_by_agent(rows):
        assert agent.annualized_premium == agent.monthly_premium * 12


def test_products_are_case_sensitive_and_share_keys_with_counts() -> None:
    rows = prepared(
        "1/5/2025,Doe,Jane,Plan A,$1,A1",
        "1/5/2025,Doe,Jane,plan a,$1,A1",
        "1/5/2025,Doe,Jane,,$1,A1",
        "1/5/2025,Doe,Jane,Plan A,$1,A1",
    )
    [agent] = aggregate_by_agent(rows)
    assert agent.products == ["Plan A", "plan a"]
    assert agent.product_counts == {"Plan A": 2, "plan a": 1}
    assert set(agent.products) == set(agent.product_counts)
    assert agent.monthly_premium == 4


def test_sorted_by_annualized_with_stable_ties() -> None:
    rows = prepared(
        "1/5/2025,Alpha,Amy,A,$10,A1",
        "1/5/2025,Beta,Bob,A,$50,A2",
        "1/5/2025,Gamma,Gus,A,$10,A3",
        "1/5/2025,Delta,Dee,A,$10,A4",
    )
    names = [a.agent_name for a in aggregate_by_agent(rows)]
    assert names == ["Bob Beta", "Amy Alpha", "Gus Gamma", "Dee Delta"]


def test_accepts_plain_records() -> None:
    records = [
        {"agent_name": "Jane Doe", "name_key": "jane doe", "premium_amount": Decimal("5"), "product": "A"},
        {"agent_name": "", "name_key": "", "premium_amount": Decimal("9"), "product": "A"},
    ]
    [agent] = aggregate_by_agent(records)
    assert agent == AgentAggregate(
        agent_name="Jane Doe",
        monthly_premium=Decimal("5"),
        annualized_premium=Decimal("60"),
        products=["A"],
        product_counts={"A": 1},
    )
