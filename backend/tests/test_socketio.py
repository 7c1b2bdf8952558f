def _round_events(sio_client):
    return [e['args'][0] for e in sio_client.get_received('/ws') if e['name'] == 'round']


def test_socket_connect(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)


def test_subscribe_empty_room_gets_none(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {'roomId': 'wall1'}, namespace='/ws')
    events = _round_events(sio_client)
    assert events == [{'roomId': 'WALL1', 'round': None}]


def test_subscribe_requires_room(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_subscribe_rejects_overlong_room(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {'roomId': 'R' * 65}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert [pkt['name'] for pkt in received] == ['error']


def test_late_subscriber_gets_current_round(client, sio_client):
    start_time = client.post('/api/broadcast', json={
        'type': 'START', 'roomId': 'WALL1', 'climbingDurationMs': 60000,
    }).get_json()['startTime']

    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {'roomId': 'WALL1'}, namespace='/ws')
    events = _round_events(sio_client)
    assert len(events) == 1
    assert events[0]['round']['startTime'] == start_time
    assert events[0]['round']['climbingDurationMs'] == 60000


def test_mutations_are_pushed(client, sio_client):
    sio_client.emit('subscribe', {'roomId': 'WALL1'}, namespace='/ws')
    sio_client.get_received('/ws')

    client.post('/api/broadcast', json={'type': 'START', 'roomId': 'WALL1', 'climbingDurationMs': 60000})
    events = _round_events(sio_client)
    assert len(events) == 1
    assert events[0]['round']['stopped'] is False

    client.post('/api/broadcast', json={'type': 'STOP', 'roomId': 'WALL1'})
    events = _round_events(sio_client)
    assert events[-1]['round']['stopped'] is True

    client.post('/api/broadcast', json={'type': 'RESET', 'roomId': 'WALL1'})
    events = _round_events(sio_client)
    assert events[-1] == {'roomId': 'WALL1', 'round': None}


def test_other_rooms_not_pushed(client, sio_client):
    sio_client.emit('subscribe', {'roomId': 'WALL1'}, namespace='/ws')
    sio_client.get_received('/ws')
    client.post('/api/broadcast', json={'type': 'START', 'roomId': 'WALL2'})
    assert _round_events(sio_client) == []


def test_unsubscribe_stops_updates(client, sio_client):
    sio_client.emit('subscribe', {'roomId': 'WALL1'}, namespace='/ws')
    sio_client.emit('unsubscribe', {'roomId': 'WALL1'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'unsubscribed' for pkt in received)
    client.post('/api/broadcast', json={'type': 'START', 'roomId': 'WALL1'})
    assert _round_events(sio_client) == []


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)
