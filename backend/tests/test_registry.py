def test_room_id_disambiguation(lobby):
    registry = lobby.registry
    first = registry.create('Alice', False, 'sid-1')
    second = registry.create('Alice', False, 'sid-2')
    third = registry.create('Alice', False, 'sid-3')
    assert first.id == "Alice's room"
    assert second.id == "Alice's room2"
    assert third.id == "Alice's room3"


def test_room_id_falls_back_to_timestamp(lobby):
    registry = lobby.registry
    ids = {registry.create('Bob', False, f'sid-{i}').id for i in range(99)}
    assert len(ids) == 99
    assert "Bob's room99" in ids

    overflow = registry.create('Bob', False, 'sid-overflow')
    suffix = overflow.id[len("Bob's room"):]
    assert overflow.id not in ids
    assert suffix.isdigit() and len(suffix) >= 12


def test_timestamp_ids_stay_unique_within_one_millisecond(lobby, monkeypatch):
    registry = lobby.registry
    for i in range(99):
        registry.create('Bob', False, f'sid-{i}')
    monkeypatch.setattr('ulleung.registry.now_ms', lambda: 1700000000000)

    a = registry.create('Bob', False, 'sid-a')
    b = registry.create('Bob', False, 'sid-b')
    c = registry.create('Bob', False, 'sid-c')
    assert a.id == "Bob's room1700000000000"
    assert b.id == "Bob's room1700000000000-2"
    assert c.id == "Bob's room1700000000000-3"
    assert len(registry) == 102
    assert registry.get(a.id) is a


def test_delete_is_idempotent_and_notifies(lobby, seated):
    room = seated('Alice', 'Bob', 'Cara')
    assert lobby.registry.delete(room.id, 'bye')
    assert lobby.registry.get(room.id) is None
    assert lobby.broadcaster.last('room:deleted', 'sid-Bob') == {'message': 'bye'}
    assert room.start_timer is None
    lobby.broadcaster.clear()
    assert lobby.registry.delete(room.id) is False
    assert lobby.broadcaster.sent == []


def test_list_active_newest_first_and_limited(lobby):
    registry = lobby.registry
    rooms = [registry.create(f'H{i}', i % 2 == 0, f'sid-{i}') for i in range(25)]
    for idx, room in enumerate(rooms):
        room.created_at = 1000 + idx
    rooms[24].started = True
    rooms[23].game_over = True

    listed = registry.list_active()
    assert len(listed) == 20
    assert listed[0]['id'] == rooms[22].id
    assert [r['createdAt'] for r in listed] == sorted((r['createdAt'] for r in listed), reverse=True)
    assert listed[0] == {
        'id': "H22's room",
        'hostName': 'H22',
        'playerCount': 1,
        'maxPlayers': 8,
        'boardMode': True,
        'createdAt': 1022,
    }
    assert len(registry.list_active(limit=5)) == 5


def test_room_list_pushed_on_create_and_join(lobby, seated):
    room = seated('Alice', 'Bob')
    pushes = lobby.broadcaster.events('rooms:list', sid=None)
    assert len(pushes) == 2
    assert pushes[-1][0]['playerCount'] == 2
    assert pushes[-1][0]['id'] == room.id


def test_prestart_timeout_deletes_unstarted_room(lobby, seated):
    room = seated('Alice')
    lobby.scheduler.advance(899)
    assert lobby.registry.get(room.id) is room
    lobby.scheduler.advance(1)
    assert lobby.registry.get(room.id) is None
    assert lobby.broadcaster.events('rooms:list', sid=None)[-1] == []


def test_start_replaces_prestart_timer_with_inactivity(lobby, started):
    room = started()
    lobby.scheduler.advance(900)
    assert lobby.registry.get(room.id) is room

    # Activity pushes the inactivity deadline back
    lobby.scheduler.advance(2000)
    lobby.engine.lock_part(room, room.players[0], True)
    lobby.scheduler.advance(3000)
    assert lobby.registry.get(room.id) is room
    lobby.scheduler.advance(600)
    assert lobby.registry.get(room.id) is None
    assert lobby.broadcaster.events('room:deleted', 'sid-Alice')


def test_inactivity_timer_does_not_delete_finished_game_early(lobby, started):
    room = started()
    lobby.engine.end_game(room, 'Alice')
    assert room.inactive_timer is None
    lobby.scheduler.advance(29)
    assert lobby.registry.get(room.id) is room
    lobby.scheduler.advance(1)
    assert lobby.registry.get(room.id) is None
