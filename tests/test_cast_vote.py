import pytest
from sqlalchemy.exc import OperationalError

from ballotbox import db
from ballotbox.audit.audit_logger import AuditAction
from ballotbox.database.errors import StorageUnavailable
from ballotbox.database.models import AuditLogEntry, Vote
from ballotbox.database.outcomes import CastOutcome
from ballotbox.replication.sync_manager import BroadcastSink


def test_cast_vote_updates_voter_tally_ledger_and_audit(election):
    """A successful cast writes all four records together."""
    result = election.cast_vote(1, 1)

    assert result.outcome == CastOutcome.SUCCESS
    assert result.success
    voter = election.get_voter(1)
    candidate = election.get_candidate(1)
    assert voter.has_voted is True
    assert voter.voted_candidate_id == 1
    assert voter.vote_time is not None
    assert candidate.vote_count == 1

    votes = election.get_all_votes()
    assert len(votes) == 1
    assert votes[0].voter_id == 1
    assert votes[0].candidate_name == 'X'
    assert votes[0].voter_class == 'diknas'

    entries = election.get_audit_logs_by_action(AuditAction.VOTE_CAST)
    assert len(entries) == 1
    assert entries[0].user_id == '1'
    assert 'candidate 1 - X' in entries[0].details


def test_receipt_reflects_committed_rows(election):
    result = election.cast_vote(2, 2)
    receipt = result.receipt

    assert receipt['vote_id'] == election.get_vote_by_voter_id(2).id
    assert receipt['candidate'] == 'Y'
    assert receipt['candidate_number'] == 2
    assert receipt['votes'] == 1
    assert receipt['voter'] == 'B'
    assert receipt['voter_class'] == 'diknas'
    assert receipt['timestamp'].endswith('Z')


def test_second_cast_is_already_voted_and_changes_nothing(election):
    election.cast_vote(1, 1)
    result = election.cast_vote(1, 2)

    assert result.outcome == CastOutcome.ALREADY_VOTED
    assert result.voter['username'] == 'voter_a'
    assert election.get_candidate(1).vote_count == 1
    assert election.get_candidate(2).vote_count == 0
    assert len(election.get_all_votes()) == 1
    assert len(election.get_audit_logs_by_action(AuditAction.VOTE_CAST)) == 1


@pytest.mark.parametrize("voter_id,candidate_id,outcome", [
    (99, 1, CastOutcome.VOTER_NOT_FOUND),
    (1, 99, CastOutcome.CANDIDATE_NOT_FOUND),
])
def test_cast_with_unknown_ids_writes_nothing(election, voter_id, candidate_id, outcome):
    result = election.cast_vote(voter_id, candidate_id)

    assert result.outcome == outcome
    assert not result.success
    assert election.get_voter(1).has_voted is False
    assert election.get_all_votes() == []
    assert election.get_all_audit_logs() == []


def test_failed_transaction_rolls_back_every_write(election, monkeypatch):
    """A storage failure partway through leaves no partial vote behind."""
    def broken_record(*args, **kwargs):
        raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))

    monkeypatch.setattr(election.audit, "record", broken_record)

    with pytest.raises(StorageUnavailable):
        election.cast_vote(1, 1)

    assert election.get_voter(1).has_voted is False
    assert election.get_voter(1).voted_candidate_id is None
    assert election.get_candidate(1).vote_count == 0
    assert election.get_all_votes() == []


def test_ledger_uniqueness_rejects_racing_duplicate(election):
    """A ledger row written by another writer turns the cast into ALREADY_VOTED."""
    db.session.add(Vote(voter_id=1, candidate_id=2, voter_name='A', voter_class='diknas',
                        candidate_name='Y', candidate_number=2))
    db.session.commit()

    result = election.cast_vote(1, 1)

    assert result.outcome == CastOutcome.ALREADY_VOTED
    assert election.get_candidate(1).vote_count == 0
    assert election.get_voter(1).has_voted is False
    assert len(election.get_all_votes()) == 1


def test_cast_without_audit_table_still_records_vote(election):
    db.session.remove()
    AuditLogEntry.__table__.drop(db.engine)

    result = election.cast_vote(3, 1)

    assert result.outcome == CastOutcome.SUCCESS
    assert election.get_candidate(1).vote_count == 1
    assert election.get_all_audit_logs() == []
    assert election.add_audit_log(AuditAction.VOTE_CAST, 3, 'C') is None


def test_cast_notifies_sinks_after_commit(election):
    sink = BroadcastSink()
    received = []
    sink.subscribe(lambda event, payload: received.append((event, payload)))
    election.sinks.append(sink)

    election.cast_vote(1, 2)

    assert received[0][0] == 'vote_cast'
    assert received[0][1]['candidate'] == 'Y'


def test_failing_sink_does_not_fail_the_cast(election):
    class Broken:
        def publish(self, event, payload):
            raise ConnectionError("sink down")

    election.sinks.append(Broken())
    result = election.cast_vote(1, 1)

    assert result.success
    assert election.get_candidate(1).vote_count == 1


def test_vote_queries(election):
    election.cast_vote(1, 1)
    election.cast_vote(2, 1)
    election.cast_vote(3, 2)

    assert [v.voter_id for v in election.get_votes_by_candidate_id(1)] == [1, 2]
    assert election.get_vote_by_voter_id(3).candidate_id == 2
    assert election.get_vote_by_voter_id(99) is None

    everything = election.get_votes_by_date('2000-01-01T00:00:00Z', '2999-01-01T00:00:00Z')
    assert len(everything) == 3
    assert election.get_votes_by_date('2000-01-01T00:00:00', '2000-01-02T00:00:00') == []
