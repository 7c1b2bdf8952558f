from compsync import db
from compsync.services.rounds.descriptor import RoundDescriptor

class Round(db.Model):
    """Persisted descriptor for one room. RESET deletes the row."""
    __tablename__ = 'round'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    start_time = db.Column(db.BigInteger, nullable=False)  # epoch ms, authoritative clock
    climbing_duration_ms = db.Column(db.Integer, nullable=False)
    preparation_duration_ms = db.Column(db.Integer, nullable=False, default=0)
    preparation_enabled = db.Column(db.Boolean, nullable=False, default=False)
    stopped = db.Column(db.Boolean, nullable=False, default=False)
    recurring = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.BigInteger, nullable=True)

    def apply(self, descriptor: RoundDescriptor) -> None:
        self.start_time = descriptor.start_time
        self.climbing_duration_ms = descriptor.climbing_duration_ms
        self.preparation_duration_ms = descriptor.preparation_duration_ms
        self.preparation_enabled = descriptor.preparation_enabled
        self.stopped = descriptor.stopped
        self.recurring = descriptor.recurring
        self.updated_at = descriptor.updated_at

    def to_descriptor(self) -> RoundDescriptor:
        return RoundDescriptor(
            start_time=int(self.start_time),
            climbing_duration_ms=int(self.climbing_duration_ms),
            preparation_duration_ms=int(self.preparation_duration_ms or 0),
            preparation_enabled=bool(self.preparation_enabled),
            stopped=bool(self.stopped),
            recurring=bool(self.recurring),
            updated_at=int(self.updated_at) if self.updated_at is not None else None,
        )