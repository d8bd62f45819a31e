def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_unknown_room_is_404(client):
    res = client.get('/api/rooms/nowhere')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Room not found'}


def test_rooms_listing(client, connect):
    host, bob = connect(), connect()
    host.emit('joinRoom', {'room': 'R1', 'clientId': 'client-a'})
    bob.emit('joinRoom', {'room': 'R1', 'clientId': 'client-b'})
    bob.emit('takeSeat', {'room': 'R1', 'playerName': 'Bob'})

    res = client.get('/api/rooms')
    assert res.status_code == 200
    assert res.get_json() == [{'room': 'R1', 'hasHost': True, 'seats': 1}]


def test_room_summary_hides_roles(client, connect):
    host, bob = connect(), connect()
    host.emit('joinRoom', {'room': 'R1', 'clientId': 'client-a'})
    bob.emit('joinRoom', {'room': 'R1', 'clientId': 'client-b'})
    bob.emit('takeSeat', {'room': 'R1', 'playerName': 'Bob'})
    host.emit('passRoles', {'room': 'R1', 'privatePlayers': [
        {'player': {'name': 'Bob'}, 'assignedCharacter': 'Werewolf'},
    ]})

    res = client.get('/api/rooms/R1')
    assert res.status_code == 200
    summary = res.get_json()
    assert summary['room'] == 'R1'
    assert summary['hasHost'] is True
    assert summary['players'] == [{'name': 'Bob'}]
    assert summary['gameState']['script'] == ''
    assert 'Werewolf' not in res.get_data(as_text=True)
