import pytest

from ballotbox.database.errors import ConstraintViolation, NotFound, StorageUnavailable
from ballotbox.database.outcomes import LoginOutcome
from ballotbox.database.reference_data import REFERENCE_VOTERS


def test_open_creates_schema_and_loads_reference_data(app):
    from ballotbox import create_store, db

    db.drop_all()
    store = create_store(app)

    inserted = store.open()

    assert inserted == {'candidates': 3, 'voters': 31, 'admins': 2}
    assert set(store.table_names()) >= {'voters', 'candidates', 'votes', 'admins', 'audit_logs'}


def test_initialize_sample_data_is_idempotent(store):
    store.initialize_sample_data()
    second = store.initialize_sample_data()

    assert second == {'candidates': 0, 'voters': 0, 'admins': 0}
    assert len(store.get_all_voters()) == len(REFERENCE_VOTERS)
    assert len(store.get_all_candidates()) == 3
    assert len(store.get_all_admins()) == 2


def test_initialize_fills_only_empty_kinds(election):
    inserted = election.initialize_sample_data()

    assert inserted == {'candidates': 0, 'voters': 0, 'admins': 2}
    assert len(election.get_all_voters()) == 3


def test_open_repairs_when_schema_cannot_be_created(store, monkeypatch):
    def fail():
        raise StorageUnavailable("database disk image is malformed")

    monkeypatch.setattr(store, "init_schema", fail)

    assert store.open() == {}
    assert len(store.get_all_voters()) == len(REFERENCE_VOTERS)


def test_reference_voters_by_class(seeded):
    assert len(seeded.get_voters_by_class('diknas')) == 16
    assert len(seeded.get_voters_by_class('pengasuhan')) == 9
    assert len(seeded.get_voters_by_class('tahfidz')) == 6


def test_validate_login_outcomes(seeded):
    assert seeded.validate_login('guru01').outcome == LoginOutcome.SUCCESS
    assert seeded.validate_login('  guru01  ').voter['username'] == 'guru01'

    missing = seeded.validate_login('nobody')
    assert missing.outcome == LoginOutcome.NOT_FOUND
    assert missing.message == 'Username not found. Use guru01 through guru31.'
    assert seeded.validate_login('').outcome == LoginOutcome.NOT_FOUND

    seeded.cast_vote(1, 1)
    voted = seeded.validate_login('guru01')
    assert voted.outcome == LoginOutcome.ALREADY_VOTED
    assert voted.voter['has_voted'] is True


def test_login_hint_with_no_voters(store):
    assert store.validate_login('guru01').message == 'Username not found. No voters are registered.'


def test_voting_status(election):
    assert election.get_voting_status(1)['vote'] is None

    election.cast_vote(1, 2)
    status = election.get_voting_status(1)

    assert status['voter']['has_voted'] is True
    assert status['vote']['candidate'] == {'id': 2, 'name': 'Y', 'number': 2}
    with pytest.raises(NotFound):
        election.get_voting_status(404)


def test_voted_and_not_voted_lists(election):
    election.cast_vote(2, 1)

    assert [v.id for v in election.get_voted_voters()] == [2]
    assert [v.id for v in election.get_not_voted_voters()] == [1, 3]


def test_duplicate_username_is_a_constraint_violation(election):
    with pytest.raises(ConstraintViolation):
        election.add_voter({'username': 'voter_a', 'name': 'Again', 'class': 'diknas'})
    assert len(election.get_all_voters()) == 3


def test_duplicate_ballot_number_is_a_constraint_violation(election):
    with pytest.raises(ConstraintViolation):
        election.add_candidate({'number': 1, 'chairman_name': 'Z'})


def test_update_voter_identity_fields(election):
    updated = election.update_voter(1, {'name': 'Alice', 'class': 'pengasuhan'})

    assert updated['name'] == 'Alice'
    assert updated['class'] == 'pengasuhan'
    assert election.get_voter_by_username('voter_a').name == 'Alice'


def test_update_voter_cannot_touch_vote_fields(election):
    with pytest.raises(ValueError):
        election.update_voter(1, {'has_voted': True})
    assert election.get_voter(1).has_voted is False


def test_update_missing_voter(election):
    with pytest.raises(NotFound):
        election.update_voter(99, {'name': 'Ghost'})


def test_delete_voter_refused_after_voting(election):
    election.cast_vote(1, 1)

    with pytest.raises(ConstraintViolation):
        election.delete_voter(1)

    election.delete_voter(2)
    assert election.get_voter(2) is None


def test_candidate_details_round_trip(election):
    election.update_candidate(1, {'motto': 'new motto', 'vision': 'better school'})
    data = election.get_candidate(1).to_dict()

    assert data['motto'] == 'new motto'
    assert data['vision'] == 'better school'
    assert data['votes'] == 0
    assert election.get_candidate_by_number(1).id == 1


def test_update_candidate_cannot_set_votes(election):
    with pytest.raises(ValueError):
        election.update_candidate(1, {'votes': 10})
    assert election.get_candidate(1).vote_count == 0


def test_delete_candidate_refused_with_votes(election):
    election.cast_vote(1, 2)

    with pytest.raises(ConstraintViolation):
        election.delete_candidate(2)

    election.delete_candidate(1)
    assert election.get_candidate(1) is None
    with pytest.raises(NotFound):
        election.delete_candidate(1)


def test_login_hint_follows_registration_order(seeded):
    seeded.add_voter({'username': 'guru100', 'name': 'Late Teacher', 'class': 'diknas'})

    message = seeded.validate_login('nobody').message
    assert message == 'Username not found. Use guru01 through guru100.'
