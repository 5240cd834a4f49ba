def test_index_and_health(client):
    assert client.get('/').status_code == 200
    res = client.get('/api/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'ok'
    assert data['database'] == 'connected'


def test_config_constants(client):
    data = client.get('/api/config').get_json()
    assert data == {
        'obligatoryLanguages': ['es', 'en'],
        'defaultLanguage': 'es',
        'defaultFreeHints': 3,
        'hintPenaltySeconds': 120,
        'defaultRoomDuration': 3600,
    }


def test_list_and_get_rooms(client):
    res = client.get('/api/rooms')
    assert res.status_code == 200
    rooms = res.get_json()
    assert [r['id'] for r in rooms] == [0, 1, 2, 3, 4]
    assert rooms[0] == {
        'id': 0, 'name': 'Sala 1', 'timeRemaining': 3600, 'isRunning': False,
        'hintsRemaining': 3, 'freeHintsCount': 3, 'lastMessage': '',
    }
    assert client.get('/api/rooms/2').get_json()['name'] == 'Sala 3'


def test_unknown_room_returns_404(client):
    res = client.get('/api/rooms/42')
    assert res.status_code == 404
    assert res.get_json()['kind'] == 'not_found'
    res = client.post('/api/rooms/42/hints/send', json={'hint': 'x'})
    assert res.status_code == 404


def test_rename_room(client):
    res = client.put('/api/rooms/1/name', json={'name': '  Egyptian Tomb '})
    assert res.status_code == 200
    assert res.get_json()['name'] == 'Egyptian Tomb'
    res = client.put('/api/rooms/1/name', json={'name': '   '})
    assert res.status_code == 400
    assert res.get_json()['kind'] == 'validation'
    assert client.get('/api/rooms/1').get_json()['name'] == 'Egyptian Tomb'


def test_timer_start_stop(client):
    res = client.post('/api/rooms/0/timer', json={'running': True})
    assert res.status_code == 200
    assert res.get_json()['isRunning'] is True
    res = client.post('/api/rooms/0/timer', json={'running': False})
    assert res.get_json()['isRunning'] is False
    res = client.post('/api/rooms/0/timer', json={'running': 'yes'})
    assert res.status_code == 400


def test_send_hints_over_http(client):
    outcomes = []
    for hint_id in ('a', 'b', 'c', 'd'):
        res = client.post('/api/rooms/0/hints/send', json={'hintId': hint_id, 'hint': f'hint {hint_id}', 'language': 'en'})
        assert res.status_code == 200
        outcomes.append(res.get_json())
    assert [o['outcome'] for o in outcomes] == ['consumedFreeHint'] * 3 + ['penaltyApplied']
    assert outcomes[-1]['timePenaltyApplied'] is True
    assert outcomes[-1]['room']['timeRemaining'] == 3480

    custom = client.post('/api/rooms/0/hints/send', json={'hintId': 'custom', 'hint': 'Use the mirror'}).get_json()
    assert custom['outcome'] == 'noPenaltyCustomHint'
    assert custom['room']['timeRemaining'] == 3480

    history = client.get('/api/rooms/0/hint-history').get_json()
    assert [h['hintId'] for h in history] == ['a', 'b', 'c', 'd', None]
    assert history[-1]['language'] == 'es'

    res = client.post('/api/rooms/0/hints/send', json={'hintId': 'e', 'hint': ''})
    assert res.status_code == 400


def test_clear_hint_history(client):
    client.post('/api/rooms/3/hints/send', json={'hintId': 'a', 'hint': 'hint a'})
    res = client.delete('/api/rooms/3/hint-history')
    assert res.get_json() == {'success': True, 'cleared': 1}
    assert client.get('/api/rooms/3/hint-history').get_json() == []


def test_send_message(client):
    res = client.post('/api/rooms/2/messages/send', json={'message': 'Five minutes!', 'language': 'en'})
    assert res.status_code == 200
    assert res.get_json()['lastMessage'] == 'Five minutes!'
    assert client.post('/api/rooms/2/messages/send', json={'message': ' '}).status_code == 400


def test_reset_room(client):
    client.post('/api/rooms/4/hints/send', json={'hintId': 'a', 'hint': 'hint a'})
    client.post('/api/rooms/4/messages/send', json={'message': 'Hi'})
    client.post('/api/rooms/4/timer', json={'running': True})
    res = client.post('/api/rooms/4/reset')
    assert res.status_code == 200
    room = res.get_json()
    assert room['timeRemaining'] == 3600
    assert room['isRunning'] is False
    assert room['hintsRemaining'] == room['freeHintsCount']
    assert room['lastMessage'] == ''
    assert client.get('/api/rooms/4/hint-history').get_json() == []


def test_chromecast_status_polling(client, services):
    presence = services['presence']
    presence.join_as_display('tv-1', 1)
    data = client.get('/api/chromecast-status/1').get_json()
    assert data['connected'] is False
    assert data['displayWindows'] == 1
    presence.set_cast_status('tv-1', True)
    data = client.get('/api/chromecast-status/1').get_json()
    assert data['connected'] is True
    assert data['casting'] is True
    assert data['castingClients'] == 1
    assert data['roomId'] == 1
    assert client.get('/api/chromecast-status/77').status_code == 404


def test_hint_analytics(client):
    client.post('/api/rooms/0/hints/send', json={'hintId': 'a', 'hint': 'hint a'})
    client.post('/api/rooms/1/hints/send', json={'hintId': 'a', 'hint': 'hint a'})
    client.post('/api/rooms/1/hints/send', json={'hint': 'custom words'})
    stats = client.get('/api/analytics/hints').get_json()
    assert stats[0]['hintId'] == 'a'
    assert stats[0]['uses'] == 2
    room_stats = client.get('/api/analytics/hints?roomId=1').get_json()
    assert sorted(s['uses'] for s in room_stats) == [1, 1]
    assert client.get('/api/analytics/hints?days=0').status_code == 400


def test_non_object_bodies_are_rejected(client):
    res = client.post('/api/rooms/0/hints/send', json=['not', 'an', 'object'])
    assert res.status_code == 400
    assert res.get_json()['kind'] == 'validation'
    assert client.post('/api/rooms/0/timer', json='start').status_code == 400
    assert client.put('/api/rooms/0/name', json=[1, 2]).status_code == 400
    assert client.post('/api/rooms/0/messages/send', json=7).status_code == 400
    assert client.get('/api/rooms/0/hint-history').get_json() == []
    assert client.get('/api/rooms/0').get_json()['hintsRemaining'] == 3
