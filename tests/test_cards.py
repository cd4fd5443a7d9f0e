"""Card endpoint and service tests."""

import pytest
from sqlalchemy.orm import Session

import src.services.card_service as card_service_module
from src.models.card import Card
from src.models.enums import Priority
from src.services import transactions
from src.services.card_service import CardService
from src.services.exceptions import InvalidReorderError, InvalidStateError, NotFoundError
from src.services.positions import is_dense


@pytest.fixture
def todo(board):
    return board["columns"][0]


@pytest.fixture
def doing(board):
    return board["columns"][1]


@pytest.fixture
def cards(client, auth_headers, todo):
    """Cards A-D in the first column."""
    return [
        client.post(
            f"/api/v1/columns/{todo['id']}/cards", headers=auth_headers, json={"title": title}
        ).json()
        for title in "ABCD"
    ]


def move(client, headers, card, column, position):
    return client.patch(
        f"/api/v1/cards/{card['id']}/move",
        headers=headers,
        json={"column_id": column["id"], "position": position},
    )


class TestCreateAndUpdate:
    def test_create_card_appends(self, client, auth_headers, todo, cards, notifier):
        assert [card["position"] for card in cards] == [0, 1, 2, 3]
        assert cards[0]["priority"] == "MEDIUM"
        assert cards[0]["tags"] == []
        assert cards[0]["archived"] is False
        assert notifier.types == ["card_created"] * 4
        assert notifier.events[0].data["title"] == "A"

    def test_create_card_with_all_fields(self, client, auth_headers, todo):
        response = client.post(
            f"/api/v1/columns/{todo['id']}/cards",
            headers=auth_headers,
            json={
                "title": "Ship it",
                "description": "Release notes too",
                "priority": "HIGH",
                "tags": ["release", "web", "release"],
                "deadline": "2030-01-15T12:00:00Z",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["priority"] == "HIGH"
        assert data["tags"] == ["release", "web"]
        assert data["description"] == "Release notes too"
        assert data["deadline"].startswith("2030-01-15T12:00:00")

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": ""},
            {"title": "x" * 201},
            {"title": "ok", "priority": "URGENT"},
            {"title": "ok", "tags": [f"t{i}" for i in range(11)]},
            {"title": "ok", "tags": ["x" * 31]},
        ],
        ids=["empty-title", "long-title", "bad-priority", "too-many-tags", "long-tag"],
    )
    def test_create_card_validation(self, client, auth_headers, todo, payload):
        response = client.post(
            f"/api/v1/columns/{todo['id']}/cards", headers=auth_headers, json=payload
        )
        assert response.status_code == 422

    def test_update_card_fields(self, client, auth_headers, cards, notifier):
        card = cards[1]
        response = client.put(
            f"/api/v1/cards/{card['id']}",
            headers=auth_headers,
            json={"title": "B2", "priority": "LOW", "tags": ["bug"], "description": "Details"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "B2"
        assert data["priority"] == "LOW"
        assert data["tags"] == ["bug"]
        assert data["description"] == "Details"
        assert data["position"] == 1
        assert notifier.types[-1] == "card_updated"

    def test_update_card_null_clears_optional_fields_only(self, client, auth_headers, todo):
        created = client.post(
            f"/api/v1/columns/{todo['id']}/cards",
            headers=auth_headers,
            json={"title": "Keep", "description": "Drop", "deadline": "2030-01-01T00:00:00Z"},
        ).json()

        response = client.put(
            f"/api/v1/cards/{created['id']}",
            headers=auth_headers,
            json={"title": None, "description": None, "deadline": None},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Keep"
        assert data["description"] is None
        assert data["deadline"] is None


class TestMove:
    def test_move_down_within_column(self, client, auth_headers, todo, cards, active_positions):
        response = move(client, auth_headers, cards[0], todo, 2)

        assert response.status_code == 200
        assert response.json()["position"] == 2
        assert active_positions(todo["id"]) == [("B", 0), ("C", 1), ("A", 2), ("D", 3)]

    def test_move_up_within_column(self, client, auth_headers, todo, cards, active_positions):
        response = move(client, auth_headers, cards[3], todo, 0)

        assert response.status_code == 200
        assert active_positions(todo["id"]) == [("D", 0), ("A", 1), ("B", 2), ("C", 3)]

    def test_move_to_current_position_changes_nothing(
        self, client, auth_headers, todo, cards, active_positions
    ):
        response = move(client, auth_headers, cards[1], todo, 1)

        assert response.status_code == 200
        assert active_positions(todo["id"]) == [("A", 0), ("B", 1), ("C", 2), ("D", 3)]

    def test_move_across_columns(
        self, client, auth_headers, todo, doing, cards, active_positions, notifier
    ):
        for title in "XY":
            client.post(
                f"/api/v1/columns/{doing['id']}/cards", headers=auth_headers, json={"title": title}
            )

        response = move(client, auth_headers, cards[1], doing, 1)

        assert response.status_code == 200
        assert response.json()["column_id"] == doing["id"]
        assert active_positions(todo["id"]) == [("A", 0), ("C", 1), ("D", 2)]
        assert active_positions(doing["id"]) == [("X", 0), ("B", 1), ("Y", 2)]
        event = notifier.events[-1]
        assert str(event.type) == "card_moved"
        assert event.data == {
            "card_id": cards[1]["id"],
            "from_column_id": todo["id"],
            "to_column_id": doing["id"],
            "position": 1,
        }

    def test_move_past_end_is_clamped(
        self, client, auth_headers, todo, doing, cards, active_positions
    ):
        response = move(client, auth_headers, cards[0], doing, 99)

        assert response.status_code == 200
        assert response.json()["position"] == 0
        assert active_positions(doing["id"]) == [("A", 0)]
        assert active_positions(todo["id"]) == [("B", 0), ("C", 1), ("D", 2)]

    def test_move_to_column_on_another_board(self, client, auth_headers, cards):
        other = client.post("/api/v1/boards", headers=auth_headers, json={"title": "Other"}).json()
        other_column = client.get(f"/api/v1/boards/{other['id']}", headers=auth_headers).json()[
            "columns"
        ][0]

        response = move(client, auth_headers, cards[0], other_column, 0)

        assert response.status_code == 409

    def test_move_into_foreign_column(self, client, auth_headers, other_auth_headers, cards):
        foreign = client.post(
            "/api/v1/boards", headers=other_auth_headers, json={"title": "Theirs"}
        ).json()
        foreign_column = client.get(
            f"/api/v1/boards/{foreign['id']}", headers=other_auth_headers
        ).json()["columns"][0]

        response = move(client, auth_headers, cards[0], foreign_column, 0)

        assert response.status_code == 404

    def test_archived_card_cannot_move(self, client, auth_headers, todo, cards):
        client.patch(f"/api/v1/cards/{cards[0]['id']}/archive", headers=auth_headers)

        response = move(client, auth_headers, cards[0], todo, 1)

        assert response.status_code == 409


class TestReorder:
    def test_reorder_cards(self, client, auth_headers, todo, cards, active_positions, notifier):
        ids = [card["id"] for card in cards]
        new_order = [ids[3], ids[1], ids[0], ids[2]]

        response = client.patch(
            "/api/v1/cards/reorder",
            headers=auth_headers,
            json={"column_id": todo["id"], "card_ids": new_order},
        )
        assert response.status_code == 200
        assert [card["id"] for card in response.json()] == new_order
        assert active_positions(todo["id"]) == [("D", 0), ("B", 1), ("A", 2), ("C", 3)]
        assert notifier.events[-1].data == {"column_id": todo["id"], "card_ids": new_order}

    def test_reorder_ignores_archived_cards(
        self, client, auth_headers, todo, cards, active_positions
    ):
        client.patch(f"/api/v1/cards/{cards[0]['id']}/archive", headers=auth_headers)
        active_ids = [card["id"] for card in cards[1:]]

        response = client.patch(
            "/api/v1/cards/reorder",
            headers=auth_headers,
            json={"column_id": todo["id"], "card_ids": list(reversed(active_ids))},
        )
        assert response.status_code == 200
        assert active_positions(todo["id"]) == [("D", 0), ("C", 1), ("B", 2)]

    def test_reorder_with_archived_card_rejected(
        self, client, auth_headers, todo, cards, active_positions
    ):
        client.patch(f"/api/v1/cards/{cards[0]['id']}/archive", headers=auth_headers)

        response = client.patch(
            "/api/v1/cards/reorder",
            headers=auth_headers,
            json={"column_id": todo["id"], "card_ids": [card["id"] for card in cards]},
        )
        assert response.status_code == 409
        assert active_positions(todo["id"]) == [("B", 0), ("C", 1), ("D", 2)]

    def test_reorder_missing_card_rejected(self, client, auth_headers, todo, cards):
        response = client.patch(
            "/api/v1/cards/reorder",
            headers=auth_headers,
            json={"column_id": todo["id"], "card_ids": [cards[0]["id"]]},
        )
        assert response.status_code == 409

    def test_reorder_empty_column(self, client, auth_headers, doing, notifier):
        response = client.patch(
            "/api/v1/cards/reorder",
            headers=auth_headers,
            json={"column_id": doing["id"], "card_ids": []},
        )
        assert response.status_code == 200
        assert response.json() == []
        assert notifier.types[-1] == "cards_reordered"

    def test_empty_reorder_of_non_empty_column_rejected(self, client, auth_headers, todo, cards):
        response = client.patch(
            "/api/v1/cards/reorder",
            headers=auth_headers,
            json={"column_id": todo["id"], "card_ids": []},
        )
        assert response.status_code == 409
        assert "4 missing" in response.json()["detail"]


class TestArchiveLifecycle:
    def test_archive_closes_gap(self, client, auth_headers, todo, cards, active_positions):
        response = client.patch(f"/api/v1/cards/{cards[1]['id']}/archive", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["archived"] is True
        assert response.json()["archived_at"] is not None
        assert active_positions(todo["id"]) == [("A", 0), ("C", 1), ("D", 2)]

    def test_archive_twice_is_rejected(self, client, auth_headers, cards):
        url = f"/api/v1/cards/{cards[0]['id']}/archive"
        assert client.patch(url, headers=auth_headers).status_code == 200
        response = client.patch(url, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == "Card is already archived"

    def test_restore_appends_to_end(
        self, client, auth_headers, todo, cards, active_positions, notifier
    ):
        client.patch(f"/api/v1/cards/{cards[0]['id']}/archive", headers=auth_headers)

        response = client.patch(f"/api/v1/cards/{cards[0]['id']}/restore", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["archived"] is False
        assert response.json()["archived_at"] is None
        assert response.json()["position"] == 3
        assert active_positions(todo["id"]) == [("B", 0), ("C", 1), ("D", 2), ("A", 3)]
        assert notifier.types[-2:] == ["card_archived", "card_restored"]

    def test_restore_active_card_rejected(self, client, auth_headers, cards):
        response = client.patch(f"/api/v1/cards/{cards[0]['id']}/restore", headers=auth_headers)
        assert response.status_code == 409

    def test_permanent_delete_requires_archived(self, client, auth_headers, cards):
        url = f"/api/v1/cards/{cards[0]['id']}/permanent"
        assert client.delete(url, headers=auth_headers).status_code == 409

        client.patch(f"/api/v1/cards/{cards[0]['id']}/archive", headers=auth_headers)
        assert client.delete(url, headers=auth_headers).status_code == 204
        assert client.delete(url, headers=auth_headers).status_code == 404

    def test_delete_active_card_closes_gap(
        self, client, auth_headers, todo, cards, active_positions, notifier
    ):
        response = client.delete(f"/api/v1/cards/{cards[0]['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert active_positions(todo["id"]) == [("B", 0), ("C", 1), ("D", 2)]
        assert notifier.types[-1] == "card_deleted"
        assert notifier.events[-1].data == {"id": cards[0]["id"], "column_id": todo["id"]}

    def test_delete_archived_card_leaves_active_cards_alone(
        self, client, auth_headers, todo, cards, active_positions
    ):
        client.patch(f"/api/v1/cards/{cards[0]['id']}/archive", headers=auth_headers)

        response = client.delete(f"/api/v1/cards/{cards[0]['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert active_positions(todo["id"]) == [("B", 0), ("C", 1), ("D", 2)]


def test_other_user_gets_not_found_everywhere(client, other_auth_headers, todo, cards):
    card_id = cards[0]["id"]
    headers = other_auth_headers

    response = client.post(
        f"/api/v1/columns/{todo['id']}/cards", headers=headers, json={"title": "x"}
    )
    assert response.status_code == 404
    assert client.put(f"/api/v1/cards/{card_id}", headers=headers, json={}).status_code == 404
    assert client.delete(f"/api/v1/cards/{card_id}", headers=headers).status_code == 404
    assert move(client, headers, cards[0], todo, 0).status_code == 404
    assert client.patch(f"/api/v1/cards/{card_id}/archive", headers=headers).status_code == 404
    assert client.patch(f"/api/v1/cards/{card_id}/restore", headers=headers).status_code == 404
    response = client.patch(
        "/api/v1/cards/reorder",
        headers=headers,
        json={"column_id": todo["id"], "card_ids": [card_id]},
    )
    assert response.status_code == 404


class TestCardService:
    @pytest.fixture
    def column(self, owned_board):
        return owned_board.columns[0]

    @pytest.fixture
    def abc(self, card_service, column, user):
        return [card_service.create_card(column.id, user.id, title) for title in "ABC"]

    def test_create_card_defaults(self, card_service, column, user):
        card = card_service.create_card(column.id, user.id, "Plain")

        assert card.priority == Priority.MEDIUM
        assert card.tags == []
        assert card.position == 0

    def test_archive_then_restore_scenario(self, card_service, column, user, abc, active_positions):
        a, b, c = abc

        card_service.archive_card(a.id, user.id)
        assert active_positions(column.id) == [("B", 0), ("C", 1)]

        card_service.restore_card(a.id, user.id)
        assert active_positions(column.id) == [("B", 0), ("C", 1), ("A", 2)]

    def test_archived_card_keeps_its_old_position(self, card_service, column, user, abc, db):
        card_service.archive_card(abc[1].id, user.id)
        card_service.delete_card(abc[0].id, user.id)

        db.expire_all()
        archived = db.get(Card, abc[1].id)
        assert archived.archived is True
        assert archived.position == 1

    def test_moving_archived_card_raises(self, card_service, column, user, abc):
        card_service.archive_card(abc[0].id, user.id)

        with pytest.raises(InvalidStateError):
            card_service.move_card(abc[0].id, user.id, column.id, 0)

    def test_positions_stay_dense_through_mixed_operations(
        self, card_service, owned_board, user, db
    ):
        todo, doing, done = owned_board.columns
        created = {
            title: card_service.create_card(todo.id, user.id, title) for title in "ABCDEF"
        }

        card_service.move_card(created["A"].id, user.id, doing.id, 0)
        card_service.archive_card(created["C"].id, user.id)
        card_service.move_card(created["F"].id, user.id, todo.id, 0)
        card_service.move_card(created["B"].id, user.id, doing.id, 5)
        card_service.delete_card(created["D"].id, user.id)
        card_service.restore_card(created["C"].id, user.id)
        card_service.move_card(created["E"].id, user.id, done.id, 0)
        card_service.archive_card(created["A"].id, user.id)

        db.expire_all()
        for column in (todo, doing, done):
            positions = [
                position
                for (position,) in db.query(Card.position).filter(
                    Card.column_id == column.id, Card.archived.is_(False)
                )
            ]
            assert is_dense(positions)

    def test_reorder_is_all_or_nothing(
        self, card_service, column, user, abc, active_positions, monkeypatch
    ):
        real_write = transactions.write_position
        calls = []

        def flaky_write(session, model, entity_id, position):
            calls.append(entity_id)
            if len(calls) == 3:
                raise RuntimeError("connection lost")
            real_write(session, model, entity_id, position)

        monkeypatch.setattr(transactions, "write_position", flaky_write)

        with pytest.raises(RuntimeError):
            card_service.reorder_cards(column.id, user.id, [card.id for card in reversed(abc)])

        assert active_positions(column.id) == [("A", 0), ("B", 1), ("C", 2)]

    def test_reorder_rejects_duplicates(self, card_service, column, user, abc):
        with pytest.raises(InvalidReorderError):
            card_service.reorder_cards(column.id, user.id, [abc[0].id, abc[0].id, abc[1].id])

    def test_concurrent_delete_second_caller_gets_not_found(
        self, card_service, column, user, abc, db, notifier, active_positions
    ):
        card_id = abc[0].id
        second_session = Session(bind=db.get_bind())
        try:
            second = CardService(second_session, notifier)
            # Both callers have seen the card before either deletes it
            assert second_session.get(Card, card_id) is not None

            card_service.delete_card(card_id, user.id)

            with pytest.raises(NotFoundError):
                second.delete_card(card_id, user.id)
        finally:
            second_session.close()

        assert active_positions(column.id) == [("B", 0), ("C", 1)]

    def test_stranger_cannot_archive(self, card_service, abc, stranger):
        with pytest.raises(NotFoundError):
            card_service.archive_card(abc[0].id, stranger.id)

    def test_update_does_not_touch_position(self, card_service, user, abc):
        card = card_service.update_card(abc[2].id, user.id, {"title": "C2", "position": 0})

        assert card.title == "C2"
        assert card.position == 2

    def test_lock_follows_card_moved_by_concurrent_caller(
        self, card_service, owned_board, user, db, notifier, active_positions, monkeypatch
    ):
        todo, doing, _ = owned_board.columns
        todo_id, doing_id = todo.id, doing.id
        x_id = card_service.create_card(todo_id, user.id, "X").id
        card_service.create_card(todo_id, user.id, "Y")
        card_service.create_card(doing_id, user.id, "Z")

        real_lock = card_service_module.lock_scopes
        locked = []
        second_session = Session(bind=db.get_bind())

        def lock_after_concurrent_move(session, model, scope_ids):
            scope_ids = sorted(scope_ids)
            if session is db:
                if not locked:
                    # Another caller moves X to Doing between our read and our lock
                    CardService(second_session, notifier).move_card(x_id, user.id, doing_id, 0)
                locked.extend(scope_ids)
            real_lock(session, model, scope_ids)

        monkeypatch.setattr(card_service_module, "lock_scopes", lock_after_concurrent_move)
        try:
            card = card_service.archive_card(x_id, user.id)
        finally:
            second_session.close()

        assert card.column_id == doing_id
        assert locked == [todo_id, doing_id]
        assert active_positions(todo_id) == [("Y", 0)]
        assert active_positions(doing_id) == [("Z", 0)]


class TestCardFailureRollback:
    """A failure partway through a positional change leaves every position as it was."""

    @pytest.fixture
    def columns(self, card_service, owned_board, user):
        todo, doing, _ = owned_board.columns
        for title in "ABC":
            card_service.create_card(todo.id, user.id, title)
        for title in "YZ":
            card_service.create_card(doing.id, user.id, title)
        return todo.id, doing.id

    @pytest.fixture
    def fail_after_first_shift(self, monkeypatch):
        real_apply = card_service_module.apply_shifts

        def apply_one_then_fail(session, model, scope_column, shifts, *criteria):
            real_apply(session, model, scope_column, list(shifts)[:1], *criteria)
            raise RuntimeError("connection lost")

        monkeypatch.setattr(card_service_module, "apply_shifts", apply_one_then_fail)

    def card_id(self, db, title):
        return db.query(Card.id).filter(Card.title == title).scalar()

    def assert_untouched(self, active_positions, columns):
        todo_id, doing_id = columns
        assert active_positions(todo_id) == [("A", 0), ("B", 1), ("C", 2)]
        assert active_positions(doing_id) == [("Y", 0), ("Z", 1)]

    def test_cross_column_move(
        self, card_service, user, db, columns, notifier, active_positions, fail_after_first_shift
    ):
        notifier.events.clear()

        with pytest.raises(RuntimeError):
            card_service.move_card(self.card_id(db, "A"), user.id, columns[1], 0)

        self.assert_untouched(active_positions, columns)
        assert db.get(Card, self.card_id(db, "A")).column_id == columns[0]
        assert notifier.events == []

    def test_delete(
        self, card_service, user, db, columns, active_positions, fail_after_first_shift
    ):
        card_id = self.card_id(db, "A")

        with pytest.raises(RuntimeError):
            card_service.delete_card(card_id, user.id)

        self.assert_untouched(active_positions, columns)

    def test_archive(
        self, card_service, user, db, columns, active_positions, fail_after_first_shift
    ):
        card_id = self.card_id(db, "B")

        with pytest.raises(RuntimeError):
            card_service.archive_card(card_id, user.id)

        self.assert_untouched(active_positions, columns)
        assert db.get(Card, card_id).archived is False
