from crust_dashboard.services.election import filter_accounts, partition_accounts


def _ids(accounts):
    return [a.account_id for a in accounts]


def test_partition_is_disjoint_and_tagged():
    result = partition_accounts(
        next_elected=["A", "B", "E"],
        validators=["A", "B", "C"],
        waiting=["A", "W", "E", "X"],
        favorites=[],
    )

    assert _ids(result.validators) == ["A", "B", "C"]
    assert [a.is_elected for a in result.validators] == [True, True, False]
    assert _ids(result.elected) == ["E"]
    assert all(a.is_elected for a in result.elected)
    assert _ids(result.waiting) == ["W", "X"]
    assert not any(a.is_elected for a in result.waiting)

    groups = [set(_ids(result.validators)), set(_ids(result.elected)), set(_ids(result.waiting))]
    assert not groups[0] & groups[1]
    assert not groups[0] & groups[2]
    assert not groups[1] & groups[2]


def test_favorites_first_and_stable():
    accounts = filter_accounts(["A", "B", "C", "D", "E"], [], ["D", "B"], [])

    assert _ids(accounts) == ["B", "D", "A", "C", "E"]
    assert [a.is_favorite for a in accounts] == [True, True, False, False, False]


def test_recompute_keeps_order():
    first = filter_accounts(["A", "B", "C"], [], ["C"], [])
    second = filter_accounts(["A", "B", "C"], [], ["C"], [])
    assert first == second


def test_missing_waiting_list():
    result = partition_accounts(["A"], ["A"], None, ["A"])
    assert result.waiting == ()
    assert result.validators[0].is_favorite is True
