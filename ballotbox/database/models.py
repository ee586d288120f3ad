# ballotbox/database/models.py

from ballotbox import db
from datetime import datetime, timezone


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    if value is None:
        return None
    return value.isoformat() + 'Z'


def parse_timestamp(value):
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class Voter(db.Model):
    __tablename__ = 'voters'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    voter_class = db.Column('class', db.String(50), nullable=False, index=True)
    # has_voted false <=> voted_candidate_id null <=> vote_time null
    has_voted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    voted_candidate_id = db.Column(db.Integer, db.ForeignKey('candidates.id'), nullable=True)
    vote_time = db.Column(db.DateTime, nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def clear_vote(self):
        self.has_voted = False
        self.voted_candidate_id = None
        self.vote_time = None

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'class': self.voter_class,
            'has_voted': bool(self.has_voted),
            'vote_candidate_id': self.voted_candidate_id,
            'vote_time': isoformat(self.vote_time),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Voter {self.id} {self.username}>'


class Candidate(db.Model):
    __tablename__ = 'candidates'
    __table_args__ = (
        db.CheckConstraint('vote_count >= 0', name='ck_candidates_vote_count_non_negative'),
    )
    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, unique=True, nullable=False, index=True)  # ballot number
    chairman_name = db.Column(db.String(120), nullable=False, index=True)
    chairman_class = db.Column(db.String(50), nullable=True)
    vice_chairman_name = db.Column(db.String(120), nullable=True)
    motto = db.Column(db.String(255), nullable=True)
    vote_count = db.Column(db.Integer, nullable=False, default=0, index=True)
    details = db.Column(db.JSON, nullable=False, default=dict)  # vision, mission, tags, images
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        data = dict(self.details or {})
        data.update({
            'id': self.id,
            'number': self.number,
            'chairman_name': self.chairman_name,
            'chairman_class': self.chairman_class,
            'vice_chairman_name': self.vice_chairman_name,
            'motto': self.motto,
            'votes': self.vote_count,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        })
        return data

    def __repr__(self):
        return f'<Candidate {self.number} {self.chairman_name}>'


class Vote(db.Model):
    __tablename__ = 'votes'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Unique: at most one ledger row per voter
    voter_id = db.Column(db.Integer, db.ForeignKey('voters.id'), unique=True, nullable=False, index=True)
    candidate_id = db.Column(db.Integer, db.ForeignKey('candidates.id'), nullable=False, index=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    # Snapshot of names at cast time
    voter_name = db.Column(db.String(120), nullable=False, index=True)
    voter_class = db.Column(db.String(50), nullable=True)
    candidate_name = db.Column(db.String(120), nullable=False)
    candidate_number = db.Column(db.Integer, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'voter_id': self.voter_id,
            'candidate_id': self.candidate_id,
            'timestamp': isoformat(self.timestamp),
            'voter_name': self.voter_name,
            'voter_class': self.voter_class,
            'candidate_name': self.candidate_name,
            'candidate_number': self.candidate_number,
        }

    def __repr__(self):
        return f'<Vote {self.id} by Voter {self.voter_id}>'


class AdminAccount(db.Model):
    __tablename__ = 'admins'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)  # plain secret unless HASH_ADMIN_SECRETS
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(30), nullable=False, default='admin', index=True)
    permissions = db.Column(db.JSON, nullable=False, default=list)
    email = db.Column(db.String(254), nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self, include_secret=False):
        data = {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'role': self.role,
            'permissions': list(self.permissions or []),
            'email': self.email,
            'phone': self.phone,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_secret:
            data['password'] = self.password
        return data


class AuditLogEntry(db.Model):
    __tablename__ = 'audit_logs'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    action = db.Column(db.String(40), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    user_name = db.Column(db.String(120), nullable=True)
    details = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    ip_address = db.Column(db.String(64), nullable=False, default='localhost')

    def to_dict(self):
        return {
            'id': self.id,
            'action': self.action,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'details': self.details,
            'timestamp': isoformat(self.timestamp),
            'ip_address': self.ip_address,
        }
