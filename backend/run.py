from gamemaster import create_app, db, socketio
from gamemaster.services.rooms import EXTENSION_KEY

app = create_app()

if __name__ == '__main__':
    services = app.extensions[EXTENSION_KEY]
    with app.app_context():
        import gamemaster.models  # noqa: F401
        db.create_all()
        services['coordinator'].load()
    services['ticker'].start()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, host='0.0.0.0', port=3001, debug=True, use_reloader=False)
