"""
Transactional election store.

ElectionStore owns voters, candidates, the vote ledger, admin accounts and the
audit log. Every mutating operation runs as one SQLAlchemy transaction: it
either commits all of its row changes or rolls all of them back.

Invariants kept by this module:
- a voter has at most one row in ``votes`` (also enforced by a unique index);
- ``Voter.has_voted`` agrees with the presence of that row;
- ``Candidate.vote_count`` equals the number of ledger rows for the candidate.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from statistics import mean
from typing import Any, Dict, List, Optional

from sqlalchemy import func, inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ballotbox import db
from ballotbox.audit.audit_logger import AuditAction, AuditLogger
from ballotbox.authentication.credentials import CredentialService
from ballotbox.authentication.rbac import DEFAULT_PERMISSIONS
from ballotbox.database.errors import (
    ConstraintViolation, ElectionStoreError, NotFound, StorageUnavailable,
)
from ballotbox.database.models import (
    AdminAccount, AuditLogEntry, Candidate, Vote, Voter, isoformat, parse_timestamp, utcnow,
)
from ballotbox.database.outcomes import (
    AdminLoginOutcome, AdminLoginResult, CastOutcome, CastResult, LoginOutcome, LoginResult,
    RepairResult, ResetOutcome, ResetResult,
)
from ballotbox.database.reference_data import (
    REFERENCE_ADMINS, REFERENCE_CANDIDATES, REFERENCE_VOTERS,
)
from ballotbox.replication.sync_manager import notify_sinks

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
SYSTEM_ACTOR = ('system', 'System')
ADMIN_ACTOR = ('admin', 'System Admin')

VOTER_FIELDS = ('username', 'name', 'class')
CANDIDATE_FIELDS = ('number', 'chairman_name', 'chairman_class', 'vice_chairman_name', 'motto')
ADMIN_FIELDS = ('username', 'name', 'role', 'permissions', 'email', 'phone')


def _percentage(part, whole):
    return round(part / whole * 100, 1) if whole else 0.0


def _epoch(value: datetime) -> float:
    return value.replace(tzinfo=timezone.utc).timestamp()


class ElectionStore:
    def __init__(self, session, credentials: Optional[CredentialService] = None,
                 sinks=None, audit_origin='localhost'):
        self.session = session
        self.credentials = credentials or CredentialService()
        self.sinks = list(sinks or [])
        self.audit = AuditLogger(session, origin=audit_origin)

    # ------------------------------------------------------------------ #
    # Transactions & lifecycle
    # ------------------------------------------------------------------ #

    @contextmanager
    def _transaction(self, operation):
        """
        Run a block as one transaction.

        Raises:
            ConstraintViolation: a unique/integrity rule failed; nothing was written.
            StorageUnavailable: the engine failed; nothing was written.
        """
        try:
            yield self.session
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"{operation} violated a constraint: {e.orig}")
            raise ConstraintViolation(f"{operation}: {e.orig}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"{operation} failed: {e}")
            raise StorageUnavailable(f"{operation} failed: {e}") from e
        except Exception:
            self.session.rollback()
            raise

    def _engine(self):
        return self.session.get_bind()

    def init_schema(self):
        """Create missing tables; existing tables and their rows are left alone."""
        try:
            db.metadata.create_all(bind=self._engine())
        except SQLAlchemyError as e:
            logger.error(f"Schema creation failed: {e}")
            raise StorageUnavailable(f"Schema creation failed: {e}") from e

    def table_names(self) -> List[str]:
        return sorted(inspect(self._engine()).get_table_names())

    def open(self):
        """Prepare the store for a session, repairing it if it cannot be opened."""
        try:
            self.init_schema()
            inserted = self.initialize_sample_data()
            logger.info(f"Election store ready: {inserted}")
            return inserted
        except StorageUnavailable as e:
            logger.error(f"Election store failed to open, attempting auto-repair: {e}")
            result = self.repair_database()
            if not result.success:
                raise StorageUnavailable(f"Auto-repair failed: {result.error}")
            return {}

    def initialize_sample_data(self) -> Dict[str, int]:
        """Load reference rows for every entity kind that is still empty."""
        inserted = {'candidates': 0, 'voters': 0, 'admins': 0}
        with self._transaction('initialize_sample_data'):
            if self.session.query(Candidate).count() == 0:
                for data in REFERENCE_CANDIDATES:
                    self.session.add(self._new_candidate(data))
                inserted['candidates'] = len(REFERENCE_CANDIDATES)

            if self.session.query(Voter).count() == 0:
                for data in REFERENCE_VOTERS:
                    self.session.add(self._new_voter(data))
                inserted['voters'] = len(REFERENCE_VOTERS)

            if self.session.query(AdminAccount).count() == 0:
                for data in REFERENCE_ADMINS:
                    self.session.add(self._new_admin(data))
                inserted['admins'] = len(REFERENCE_ADMINS)
        return inserted

    # ------------------------------------------------------------------ #
    # Voters
    # ------------------------------------------------------------------ #

    def _new_voter(self, data):
        return Voter(
            id=data.get('id'),
            username=data['username'].strip(),
            name=data['name'],
            voter_class=data.get('class') or data.get('voter_class') or '',
            has_voted=False,
            voted_candidate_id=None,
            vote_time=None,
        )

    def add_voter(self, data) -> Dict[str, Any]:
        with self._transaction('add_voter'):
            voter = self._new_voter(data)
            self.session.add(voter)
        logger.info(f"Voter added: {voter.username}")
        return voter.to_dict()

    def get_voter(self, voter_id) -> Optional[Voter]:
        return self.session.get(Voter, voter_id)

    def get_voter_by_username(self, username) -> Optional[Voter]:
        return self.session.query(Voter).filter_by(username=username).first()

    def get_all_voters(self) -> List[Voter]:
        return self.session.query(Voter).order_by(Voter.id).all()

    def get_voters_by_class(self, class_name) -> List[Voter]:
        return self.session.query(Voter).filter_by(voter_class=class_name).order_by(Voter.id).all()

    def get_voted_voters(self) -> List[Voter]:
        return self.session.query(Voter).filter_by(has_voted=True).order_by(Voter.id).all()

    def get_not_voted_voters(self) -> List[Voter]:
        return self.session.query(Voter).filter_by(has_voted=False).order_by(Voter.id).all()

    def update_voter(self, voter_id, updates) -> Dict[str, Any]:
        """Update identity fields only; vote fields belong to cast/reset."""
        unknown = set(updates) - set(VOTER_FIELDS)
        if unknown:
            raise ValueError(f"Voter fields cannot be updated: {', '.join(sorted(unknown))}")
        with self._transaction('update_voter'):
            voter = self.session.get(Voter, voter_id)
            if voter is None:
                raise NotFound(f"Voter {voter_id} not found")
            if 'username' in updates:
                voter.username = updates['username'].strip()
            if 'name' in updates:
                voter.name = updates['name']
            if 'class' in updates:
                voter.voter_class = updates['class']
        logger.info(f"Voter updated: {voter_id}")
        return voter.to_dict()

    def delete_voter(self, voter_id):
        with self._transaction('delete_voter'):
            voter = self.session.get(Voter, voter_id)
            if voter is None:
                raise NotFound(f"Voter {voter_id} not found")
            if voter.has_voted:
                raise ConstraintViolation(f"Voter {voter_id} has voted; reset the vote before removing")
            self.session.delete(voter)
        logger.info(f"Voter deleted: {voter_id}")

    def validate_login(self, username) -> LoginResult:
        username = (username or '').strip()
        voter = self.get_voter_by_username(username) if username else None

        if voter is None:
            return LoginResult(LoginOutcome.NOT_FOUND, message=self._username_hint())

        if voter.has_voted:
            return LoginResult(
                LoginOutcome.ALREADY_VOTED,
                message='You have already voted. You cannot vote again.',
                voter=voter.to_dict(),
            )

        return LoginResult(LoginOutcome.SUCCESS, voter=voter.to_dict())

    def _username_hint(self):
        # Registration order, not string order: guru100 sorts before guru20
        first = self.session.query(Voter.username).order_by(Voter.id).first()
        if first is None:
            return 'Username not found. No voters are registered.'
        last = self.session.query(Voter.username).order_by(Voter.id.desc()).first()
        return f'Username not found. Use {first[0]} through {last[0]}.'

    def get_voting_status(self, voter_id) -> Dict[str, Any]:
        voter = self.get_voter(voter_id)
        if voter is None:
            raise NotFound(f"Voter {voter_id} not found")

        vote_details = None
        if voter.has_voted:
            vote = self.get_vote_by_voter_id(voter_id)
            candidate = self.get_candidate(vote.candidate_id) if vote else None
            vote_details = {
                'voted_at': isoformat(voter.vote_time),
                'candidate': {
                    'id': candidate.id,
                    'name': candidate.chairman_name,
                    'number': candidate.number,
                } if candidate else None,
            }

        return {
            'voter': {
                'id': voter.id,
                'name': voter.name,
                'username': voter.username,
                'class': voter.voter_class,
                'has_voted': bool(voter.has_voted),
            },
            'vote': vote_details,
        }

    # ------------------------------------------------------------------ #
    # Candidates
    # ------------------------------------------------------------------ #

    def _new_candidate(self, data):
        details = dict(data.get('details') or {})
        for key, value in data.items():
            if key not in CANDIDATE_FIELDS and key not in ('id', 'details', 'votes', 'vote_count',
                                                          'created_at', 'updated_at'):
                details[key] = value
        return Candidate(
            id=data.get('id'),
            number=data['number'],
            chairman_name=data['chairman_name'],
            chairman_class=data.get('chairman_class'),
            vice_chairman_name=data.get('vice_chairman_name'),
            motto=data.get('motto'),
            vote_count=0,
            details=details,
        )

    def add_candidate(self, data) -> Dict[str, Any]:
        with self._transaction('add_candidate'):
            candidate = self._new_candidate(data)
            self.session.add(candidate)
        logger.info(f"Candidate added: {candidate.number} - {candidate.chairman_name}")
        return candidate.to_dict()

    def get_candidate(self, candidate_id) -> Optional[Candidate]:
        return self.session.get(Candidate, candidate_id)

    def get_candidate_by_number(self, number) -> Optional[Candidate]:
        return self.session.query(Candidate).filter_by(number=number).first()

    def get_all_candidates(self) -> List[Candidate]:
        return self.session.query(Candidate).order_by(Candidate.id).all()

    def update_candidate(self, candidate_id, updates) -> Dict[str, Any]:
        """Update display data. The tally is owned by the vote ledger and cannot be set here."""
        if 'votes' in updates or 'vote_count' in updates:
            raise ValueError("Candidate vote count cannot be updated directly")
        with self._transaction('update_candidate'):
            candidate = self.session.get(Candidate, candidate_id)
            if candidate is None:
                raise NotFound(f"Candidate {candidate_id} not found")
            details = dict(candidate.details or {})
            for key, value in updates.items():
                if key in CANDIDATE_FIELDS:
                    setattr(candidate, key, value)
                elif key == 'details':
                    details.update(value or {})
                else:
                    details[key] = value
            candidate.details = details
        logger.info(f"Candidate updated: {candidate_id}")
        return candidate.to_dict()

    def delete_candidate(self, candidate_id):
        with self._transaction('delete_candidate'):
            candidate = self.session.get(Candidate, candidate_id)
            if candidate is None:
                raise NotFound(f"Candidate {candidate_id} not found")
            if candidate.vote_count > 0:
                raise ConstraintViolation(f"Candidate {candidate_id} has votes; reset them before removing")
            self.session.delete(candidate)
        logger.info(f"Candidate deleted: {candidate_id}")

    # ------------------------------------------------------------------ #
    # Voting
    # ------------------------------------------------------------------ #

    def cast_vote(self, voter_id, candidate_id) -> CastResult:
        """
        Record one vote: mark the voter, bump the tally, append the ledger row
        and the VOTE_CAST audit entry, all in a single transaction.

        Returns:
            CastResult with SUCCESS and a receipt, or ALREADY_VOTED,
            VOTER_NOT_FOUND, CANDIDATE_NOT_FOUND. Nothing is written for the
            non-success outcomes.

        Raises:
            StorageUnavailable: the transaction failed and was rolled back.
        """
        audit_available = self.audit.is_available()
        try:
            with self._transaction('cast_vote'):
                voter = self.session.get(Voter, voter_id, with_for_update=True)
                if voter is None:
                    return CastResult(CastOutcome.VOTER_NOT_FOUND, message=f'Voter {voter_id} not found')

                if voter.has_voted:
                    return CastResult(CastOutcome.ALREADY_VOTED,
                                      message='You have already voted.', voter=voter.to_dict())

                candidate = self.session.get(Candidate, candidate_id, with_for_update=True)
                if candidate is None:
                    return CastResult(CastOutcome.CANDIDATE_NOT_FOUND,
                                      message=f'Candidate {candidate_id} not found')

                now = utcnow()
                voter.has_voted = True
                voter.voted_candidate_id = candidate.id
                voter.vote_time = now

                # Increment in SQL so concurrent writers cannot lose updates
                candidate.vote_count = Candidate.vote_count + 1

                vote = Vote(
                    voter_id=voter.id,
                    candidate_id=candidate.id,
                    timestamp=now,
                    voter_name=voter.name,
                    voter_class=voter.voter_class,
                    candidate_name=candidate.chairman_name,
                    candidate_number=candidate.number,
                )
                self.session.add(vote)

                if audit_available:
                    self.audit.record(
                        AuditAction.VOTE_CAST, voter.id, voter.name,
                        f'Voted for candidate {candidate.number} - {candidate.chairman_name}',
                    )
        except ConstraintViolation:
            # Another writer committed a vote for this voter first
            logger.warning(f"Duplicate vote rejected by ledger for voter {voter_id}")
            return CastResult(CastOutcome.ALREADY_VOTED, message='You have already voted.')

        # Attributes were expired by the commit; these reads come from the stored rows.
        receipt = {
            'vote_id': vote.id,
            'timestamp': isoformat(voter.vote_time),
            'candidate': candidate.chairman_name,
            'candidate_number': candidate.number,
            'votes': candidate.vote_count,
            'voter': voter.name,
            'voter_class': voter.voter_class,
        }
        logger.info(f"Vote recorded: voter {voter.id} -> candidate {candidate.number}")
        notify_sinks(self.sinks, 'vote_cast', receipt)
        return CastResult(CastOutcome.SUCCESS, receipt=receipt)

    def get_all_votes(self) -> List[Vote]:
        return self.session.query(Vote).order_by(Vote.id).all()

    def get_vote_by_voter_id(self, voter_id) -> Optional[Vote]:
        return self.session.query(Vote).filter_by(voter_id=voter_id).first()

    def get_votes_by_candidate_id(self, candidate_id) -> List[Vote]:
        return self.session.query(Vote).filter_by(candidate_id=candidate_id).order_by(Vote.id).all()

    def get_votes_by_date(self, start, end) -> List[Vote]:
        start, end = parse_timestamp(start), parse_timestamp(end)
        return (self.session.query(Vote)
                .filter(Vote.timestamp >= start, Vote.timestamp <= end)
                .order_by(Vote.timestamp)
                .all())

    # ------------------------------------------------------------------ #
    # Statistics
    # ------------------------------------------------------------------ #

    def get_election_stats(self) -> Dict[str, Any]:
        voters = self.get_all_voters()
        candidates = self.get_all_candidates()
        votes = self.get_all_votes()

        total_voters = len(voters)
        voted_voters = sum(1 for v in voters if v.has_voted)

        votes_by_class = {}
        for voter in voters:
            bucket = votes_by_class.setdefault(voter.voter_class, {'total': 0, 'voted': 0})
            bucket['total'] += 1
            if voter.has_voted:
                bucket['voted'] += 1

        vote_times = sorted(v.timestamp for v in votes)
        first_vote = last_vote = average_vote_time = None
        if vote_times:
            first_vote = isoformat(vote_times[0])
            last_vote = isoformat(vote_times[-1])
            average = mean(_epoch(t) for t in vote_times)
            average_vote_time = isoformat(datetime.fromtimestamp(average, tz=timezone.utc).replace(tzinfo=None))

        # Candidates come ordered by id, so equal tallies stay in id order.
        ranked = sorted(candidates, key=lambda c: -(c.vote_count or 0))

        return {
            'total_voters': total_voters,
            'voted_voters': voted_voters,
            'not_voted_voters': total_voters - voted_voters,
            'vote_percentage': _percentage(voted_voters, total_voters),
            'total_candidates': len(candidates),
            'total_votes': len(votes),
            'average_vote_time': average_vote_time,
            'first_vote': first_vote,
            'last_vote': last_vote,
            'votes_by_class': votes_by_class,
            'candidates': [
                {
                    'id': c.id,
                    'name': c.chairman_name,
                    'number': c.number,
                    'votes': c.vote_count or 0,
                    'percentage': _percentage(c.vote_count or 0, voted_voters),
                    'vice_chairman': c.vice_chairman_name,
                    'motto': c.motto,
                    'class': c.chairman_class,
                }
                for c in ranked
            ],
        }

    def ledger_tallies(self) -> Dict[int, int]:
        """Vote counts per candidate id as computed from the ledger."""
        rows = (self.session.query(Vote.candidate_id, func.count(Vote.id))
                .group_by(Vote.candidate_id)
                .all())
        return {candidate_id: count for candidate_id, count in rows}

    # ------------------------------------------------------------------ #
    # Resets
    # ------------------------------------------------------------------ #

    def reset_all_votes(self) -> ResetResult:
        audit_available = self.audit.is_available()
        try:
            with self._transaction('reset_all_votes'):
                self.session.query(Voter).update(
                    {Voter.has_voted: False, Voter.voted_candidate_id: None,
                     Voter.vote_time: None, Voter.updated_at: utcnow()},
                    synchronize_session='fetch',
                )
                self.session.query(Candidate).update(
                    {Candidate.vote_count: 0, Candidate.updated_at: utcnow()},
                    synchronize_session='fetch',
                )
                removed = self.session.query(Vote).delete(synchronize_session='fetch')
                if audit_available:
                    self.audit.record(AuditAction.RESET_ALL_VOTES, *ADMIN_ACTOR,
                                      details=f'Reset all voting data ({removed} votes)')
        except StorageUnavailable as e:
            return ResetResult(ResetOutcome.FAILED, message=str(e))

        logger.info(f"All votes reset: {removed} ledger rows removed")
        notify_sinks(self.sinks, 'votes_reset', {'removed': removed})
        return ResetResult(ResetOutcome.SUCCESS, message=f'{removed} votes removed')

    def reset_single_vote(self, voter_id) -> ResetResult:
        """
        Undo one voter's vote. Calling it again for the same voter reports
        NOT_VOTED and changes nothing.
        """
        audit_available = self.audit.is_available()
        with self._transaction('reset_single_vote'):
            voter = self.session.get(Voter, voter_id, with_for_update=True)
            if voter is None:
                return ResetResult(ResetOutcome.VOTER_NOT_FOUND, message=f'Voter {voter_id} not found')

            if not voter.has_voted:
                return ResetResult(ResetOutcome.NOT_VOTED, message='Voter has not voted')

            vote = self.session.query(Vote).filter_by(voter_id=voter.id).first()
            candidate_id = vote.candidate_id if vote else voter.voted_candidate_id

            voter.clear_vote()
            if candidate_id is not None:
                candidate = self.session.get(Candidate, candidate_id, with_for_update=True)
                if candidate is not None:
                    candidate.vote_count = max(0, (candidate.vote_count or 0) - 1)
            if vote is not None:
                self.session.delete(vote)

            if audit_available:
                self.audit.record(AuditAction.RESET_SINGLE_VOTE, *ADMIN_ACTOR,
                                  details=f'Reset vote for voter: {voter.name} (ID: {voter.id})')

        logger.info(f"Single vote reset: voter {voter_id}")
        notify_sinks(self.sinks, 'vote_reset', {'voter_id': voter_id})
        return ResetResult(ResetOutcome.SUCCESS)

    # ------------------------------------------------------------------ #
    # Admins
    # ------------------------------------------------------------------ #

    def _new_admin(self, data):
        return AdminAccount(
            id=data.get('id'),
            username=data['username'],
            password=self.credentials.make_secret(data['password']),
            name=data.get('name') or data['username'],
            role=data.get('role') or 'admin',
            permissions=list(data.get('permissions') or []),
            email=data.get('email'),
            phone=data.get('phone'),
        )

    def get_all_admins(self) -> List[AdminAccount]:
        return self.session.query(AdminAccount).order_by(AdminAccount.id).all()

    def get_admin(self, admin_id) -> Optional[AdminAccount]:
        return self.session.get(AdminAccount, admin_id)

    def add_admin(self, data) -> Dict[str, Any]:
        with self._transaction('add_admin'):
            admin = self._new_admin(data)
            self.session.add(admin)
        logger.info(f"Admin added: {admin.username}")
        self.audit.log_event(AuditAction.ADMIN_ADDED, *SYSTEM_ACTOR,
                             details=f'New admin added: {admin.username}')
        return admin.to_dict()

    def update_admin(self, admin_id, updates) -> Dict[str, Any]:
        unknown = set(updates) - set(ADMIN_FIELDS) - {'password'}
        if unknown:
            raise ValueError(f"Admin fields cannot be updated: {', '.join(sorted(unknown))}")
        with self._transaction('update_admin'):
            admin = self.session.get(AdminAccount, admin_id)
            if admin is None:
                raise NotFound(f"Admin {admin_id} not found")
            for key, value in updates.items():
                if key == 'password':
                    admin.password = self.credentials.make_secret(value)
                else:
                    setattr(admin, key, value)
            admin.updated_at = utcnow()
        logger.info(f"Admin updated: {admin_id}")
        self.audit.log_event(AuditAction.ADMIN_UPDATED, *SYSTEM_ACTOR,
                             details=f'Admin updated: {admin.username}')
        return admin.to_dict()

    def delete_admin(self, admin_id):
        with self._transaction('delete_admin'):
            admin = self.session.get(AdminAccount, admin_id)
            if admin is None:
                raise NotFound(f"Admin {admin_id} not found")
            username = admin.username
            self.session.delete(admin)
        logger.info(f"Admin deleted: {admin_id}")
        self.audit.log_event(AuditAction.ADMIN_DELETED, *SYSTEM_ACTOR,
                             details=f'Admin deleted: {username}')

    def validate_admin_login(self, username, password) -> AdminLoginResult:
        admin = self.session.query(AdminAccount).filter_by(username=(username or '').strip()).first()

        if admin is None:
            return AdminLoginResult(AdminLoginOutcome.BAD_USERNAME, message='Admin username not found')

        if not self.credentials.verify(password, admin.password):
            return AdminLoginResult(AdminLoginOutcome.BAD_PASSWORD, message='Wrong password')

        self.audit.log_event(AuditAction.ADMIN_LOGIN, admin.id, admin.name, details='Admin login succeeded')

        return AdminLoginResult(AdminLoginOutcome.SUCCESS, admin={
            'id': admin.id,
            'username': admin.username,
            'name': admin.name,
            'role': admin.role,
            'permissions': list(admin.permissions or []) or [p.value for p in DEFAULT_PERMISSIONS],
        })

    # ------------------------------------------------------------------ #
    # Audit log
    # ------------------------------------------------------------------ #

    def add_audit_log(self, action, user_id=None, user_name=None, details=None):
        return self.audit.log_event(action, user_id, user_name, details)

    def get_all_audit_logs(self) -> List[AuditLogEntry]:
        return self.audit.get_all()

    def get_audit_logs_by_action(self, action) -> List[AuditLogEntry]:
        return self.audit.get_by_action(action)

    def clear_audit_logs(self) -> int:
        with self._transaction('clear_audit_logs'):
            removed = self.audit.clear()
        return removed

    # ------------------------------------------------------------------ #
    # Export / restore / repair
    # ------------------------------------------------------------------ #

    def export_voting_data(self) -> Dict[str, Any]:
        return {
            'metadata': {
                'export_date': isoformat(utcnow()),
                'system': 'Election System Database',
                'version': EXPORT_VERSION,
            },
            'statistics': self.get_election_stats(),
            'voters': [v.to_dict() for v in self.get_all_voters()],
            'candidates': [c.to_dict() for c in self.get_all_candidates()],
            'votes': [v.to_dict() for v in self.get_all_votes()],
            'admins': [a.to_dict(include_secret=True) for a in self.get_all_admins()],
            'audit_logs': [e.to_dict() for e in self.get_all_audit_logs()],
        }

    def restore_database(self, backup) -> Dict[str, int]:
        """
        Replace voters, candidates and votes (and admins, when the backup has
        them) with the contents of an export. Tallies and voter flags are
        rebuilt from the restored ledger.
        """
        data = backup.get('data', backup) if isinstance(backup, dict) else None
        if not isinstance(data, dict) or not all(k in data for k in ('voters', 'candidates', 'votes')):
            raise ValueError("Backup must contain voters, candidates and votes")
        self._check_backup(data)

        votes_by_voter = {v['voter_id']: v for v in data['votes']}
        tallies = {}
        for vote in data['votes']:
            tallies[vote['candidate_id']] = tallies.get(vote['candidate_id'], 0) + 1

        with self._transaction('restore_database'):
            self.session.query(Vote).delete()
            self.session.query(Voter).delete()
            self.session.query(Candidate).delete()
            if data.get('admins'):
                self.session.query(AdminAccount).delete()

            for item in data['candidates']:
                candidate = self._new_candidate(item)
                candidate.vote_count = tallies.get(candidate.id, 0)
                if item.get('votes', candidate.vote_count) != candidate.vote_count:
                    logger.warning(f"Candidate {candidate.id} tally {item.get('votes')} disagrees "
                                   f"with ledger ({candidate.vote_count}); using ledger")
                self.session.add(candidate)

            for item in data['voters']:
                voter = self._new_voter(item)
                vote = votes_by_voter.get(voter.id)
                if vote is not None:
                    voter.has_voted = True
                    voter.voted_candidate_id = vote['candidate_id']
                    voter.vote_time = parse_timestamp(vote['timestamp'])
                self.session.add(voter)
            self.session.flush()

            for item in data['votes']:
                self.session.add(Vote(
                    id=item.get('id'),
                    voter_id=item['voter_id'],
                    candidate_id=item['candidate_id'],
                    timestamp=parse_timestamp(item['timestamp']),
                    voter_name=item.get('voter_name') or '',
                    voter_class=item.get('voter_class'),
                    candidate_name=item.get('candidate_name') or '',
                    candidate_number=item.get('candidate_number') or 0,
                ))

            for item in data.get('admins') or []:
                self.session.add(AdminAccount(
                    id=item.get('id'),
                    username=item['username'],
                    password=item['password'],
                    name=item.get('name') or item['username'],
                    role=item.get('role') or 'admin',
                    permissions=list(item.get('permissions') or []),
                    email=item.get('email'),
                    phone=item.get('phone'),
                ))

        counts = {'voters': len(data['voters']), 'candidates': len(data['candidates']),
                  'votes': len(data['votes']), 'admins': len(data.get('admins') or [])}
        logger.info(f"Database restored: {counts}")
        self.audit.log_event(AuditAction.DATABASE_RESTORE, *SYSTEM_ACTOR,
                             details='Database restored from backup')
        return counts

    @staticmethod
    def _check_backup(data):
        """Reject a backup whose rows are incomplete or whose ledger points outside it."""
        required = {
            'voters': ('id', 'username', 'name'),
            'candidates': ('id', 'number', 'chairman_name'),
            'votes': ('voter_id', 'candidate_id', 'timestamp'),
        }
        if data.get('admins'):
            required['admins'] = ('username', 'password')
        for section, keys in required.items():
            if not isinstance(data[section], list):
                raise ValueError(f"Backup {section} must be a list")
            for index, item in enumerate(data[section]):
                if not isinstance(item, dict):
                    raise ValueError(f"Backup {section}[{index}] must be an object")
                missing = [k for k in keys if item.get(k) is None]
                if missing:
                    raise ValueError(f"Backup {section}[{index}] is missing {', '.join(missing)}")

        voter_ids = {v['id'] for v in data['voters']}
        candidate_ids = {c['id'] for c in data['candidates']}
        for index, vote in enumerate(data['votes']):
            if vote['voter_id'] not in voter_ids:
                raise ValueError(f"Backup votes[{index}] references unknown voter {vote['voter_id']}")
            if vote['candidate_id'] not in candidate_ids:
                raise ValueError(f"Backup votes[{index}] references unknown candidate {vote['candidate_id']}")
            parse_timestamp(vote['timestamp'])

    def repair_database(self) -> RepairResult:
        """
        Recreate the store from scratch and reload reference data.

        Lossy: rows written since the last backup are discarded. The snapshot
        taken before the rebuild (None if unreadable) is returned so it can be
        restored by an operator.
        """
        logger.warning("Attempting to repair database")
        snapshot = None
        try:
            snapshot = self.export_voting_data()
        except (SQLAlchemyError, ElectionStoreError) as e:
            self.session.rollback()
            logger.error(f"Could not snapshot database before repair: {e}")

        try:
            self.session.close()
            engine = self._engine()
            db.metadata.drop_all(bind=engine)
            db.metadata.create_all(bind=engine)
            self.initialize_sample_data()
        except (SQLAlchemyError, ElectionStoreError) as e:
            self.session.rollback()
            logger.error(f"Database repair failed: {e}")
            return RepairResult(False, error=str(e), snapshot=snapshot)

        self.audit.log_event(AuditAction.DATABASE_REPAIR, *SYSTEM_ACTOR,
                             details='Database repaired successfully')
        logger.info("Database repair completed")
        return RepairResult(True, snapshot=snapshot)
