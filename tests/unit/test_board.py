from vaultbox.domain.projects.board import (
    GENERAL_COLUMNS,
    MAX_STICKIES,
    MAX_TAGS,
    SAP_COLUMNS,
    default_board,
    is_member,
    is_owner,
    normalize_board,
    normalize_stickies,
    parse_project_type,
)

NOW = "2024-05-01T00:00:00+00:00"


def test_parse_project_type():
    assert parse_project_type(None) == "sap"
    assert parse_project_type("GENERAL") == "general"
    assert parse_project_type("anything") == "sap"


def test_default_boards():
    sap = default_board(NOW, "sap")
    general = default_board(NOW, "general")

    assert [c["id"] for c in sap["columns"]] == [cid for cid, _ in SAP_COLUMNS]
    assert [c["id"] for c in general["columns"]] == [cid for cid, _ in GENERAL_COLUMNS]
    assert sap["cards"][0]["id"] == "welcome"
    assert sap["cards"][0]["columnId"] == "backlog"
    assert general["cards"][0]["type"] == "general"


def test_normalize_board_drops_invalid_items():
    board = normalize_board({
        "columns": [{"id": "todo", "title": "To Do"}, {"id": 5, "title": "bad"}, "junk"],
        "cards": [
            {"id": "c1", "columnId": "todo", "title": "Card"},
            {"id": "c2", "title": "no column"},
        ],
    }, NOW)

    assert board["columns"] == [{"id": "todo", "title": "To Do"}]
    assert [c["id"] for c in board["cards"]] == ["c1"]
    card = board["cards"][0]
    assert card["createdAt"] == NOW
    assert card["updatedAt"] == NOW
    assert card["tags"] is None
    assert card["estimateHours"] is None


def test_normalize_board_clamps_values():
    board = normalize_board({
        "columns": [{"id": "x" * 100, "title": "t" * 100}],
        "cards": [{
            "id": "c1",
            "columnId": "todo",
            "title": "T" * 500,
            "description": "d" * 3000,
            "estimateHours": 10 ** 9,
            "type": "epic",
            "tags": ["tag" * 20] * 20 + [3],
            "comments": [{"text": "hi", "author": "bob"}] * 60 + [{"author": "no text"}],
            "emails": [{"body": "b" * 20000, "subject": "s"}],
            "approvedAt": 123,
        }],
    }, NOW)

    assert len(board["columns"][0]["id"]) == 64
    assert len(board["columns"][0]["title"]) == 64
    card = board["cards"][0]
    assert len(card["title"]) == 120
    assert len(card["description"]) == 2000
    assert card["estimateHours"] == 100000
    assert card["type"] is None
    assert len(card["tags"]) == MAX_TAGS
    assert all(len(t) == 32 for t in card["tags"])
    assert len(card["comments"]) == 50
    assert card["comments"][0] == {"at": NOW, "author": "bob", "text": "hi"}
    assert len(card["emails"][0]["body"]) == 15000
    assert card["approvedAt"] is None


def test_negative_or_non_numeric_estimate():
    cards = normalize_board({"cards": [
        {"id": "a", "columnId": "x", "title": "a", "estimateHours": -5},
        {"id": "b", "columnId": "x", "title": "b", "estimateHours": "abc"},
        {"id": "c", "columnId": "x", "title": "c", "estimateHours": float("inf")},
    ]}, NOW)["cards"]

    assert [c["estimateHours"] for c in cards] == [0, None, None]


def test_normalize_stickies():
    stickies = normalize_stickies([
        {"id": "s1", "text": "hello", "color": "pink", "x": 5000, "y": -10, "rotation": 30},
        {"id": "s2", "text": "x", "color": "orange", "createdBy": "uid-other"},
        {"id": "s3"},
    ], "uid-alice", NOW)

    assert [s["id"] for s in stickies] == ["s1", "s2"]
    s1, s2 = stickies
    assert (s1["x"], s1["y"], s1["rotation"]) == (2000, 0, 8)
    assert s1["color"] == "pink"
    assert s1["createdBy"] == "uid-alice"
    assert s2["color"] == "yellow"
    assert s2["createdBy"] == "uid-other"
    assert (s2["x"], s2["y"], s2["rotation"]) == (0, 0, 0)


def test_normalize_stickies_limits():
    assert normalize_stickies("nope", "u") == []
    many = [{"id": str(i), "text": "t"} for i in range(150)]
    assert len(normalize_stickies(many, "u", NOW)) == MAX_STICKIES


def test_access_helpers():
    project = {"ownerUid": "a", "sharedWith": ["b"]}

    assert is_owner(project, "a")
    assert not is_owner(project, "b")
    assert is_member(project, "a")
    assert is_member(project, "b")
    assert not is_member(project, "c")
