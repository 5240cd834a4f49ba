from datetime import datetime, timezone

from gamemaster import db


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Room(db.Model):
    __tablename__ = 'rooms'
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(128), nullable=False)
    time_remaining = db.Column(db.Integer, nullable=False, default=3600)
    is_running = db.Column(db.Boolean, nullable=False, default=False)
    hints_remaining = db.Column(db.Integer, nullable=False, default=3)
    free_hints_count = db.Column(db.Integer, nullable=False, default=3)
    last_message = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)


class HintUsage(db.Model):
    __tablename__ = 'hint_usage'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False, index=True)
    # NULL for ad hoc hints typed by the game master
    hint_id = db.Column(db.String(64), nullable=True)
    hint_text = db.Column(db.Text, nullable=False)
    language = db.Column(db.String(16), nullable=False)
    sent_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        sent_at = self.sent_at
        return {
            'id': self.id,
            'roomId': self.room_id,
            'hintId': self.hint_id,
            'hint': self.hint_text,
            'language': self.language,
            'sentAt': sent_at.isoformat() if sent_at else None,
        }
