def test_index_serves_client(client):
    res = client.get('/')
    assert res.status_code == 200
    assert b'lobby' in res.data


def test_landing_redirects_to_room_page(client):
    for path in ('/ulleung', '/ulleung/'):
        res = client.get(path)
        assert res.status_code == 302
        assert res.headers['Location'].endswith('/ulleung/room.html')
    res = client.get('/ulleung/room.html')
    assert res.status_code == 200
    assert b'room' in res.data


def test_unknown_path_falls_back(client):
    res = client.get('/nope.js', headers={'Accept': 'application/json'})
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Not Found'}

    res = client.get('/nope', headers={'Accept': 'text/html'})
    assert res.status_code == 404
    assert b'lobby' in res.data


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok', 'rooms': 0}


def test_rooms_endpoint_lists_open_rooms(flask_app, client):
    lobby = flask_app.extensions['ulleung']
    lobby.sessions.create_room('sid-a', 'Alice', False)
    lobby.sessions.create_room('sid-b', 'Bob', True)

    rooms = client.get('/api/rooms').get_json()
    assert [r['hostName'] for r in rooms] == ['Bob', 'Alice']
    assert rooms[0]['boardMode'] is True
