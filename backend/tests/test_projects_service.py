"""
Project repository: token uniqueness, label uniqueness, updates, status updates
"""
import pytest
from pydantic import ValidationError

from app.schemas.projects import ProjectCreate, ProjectUpdate, StatusUpdateCreate, StatusUpdateEdit
from app.services import projects as svc
from app.services.document_store import PROJECTS, InMemoryDocumentStore
from app.services.projects import ProjectNameTaken, ProjectNotFound, StatusUpdateNotFound
from app.services.tokens import (
    InvalidTokenFormat,
    TokenAllocationExhausted,
    TokenAlreadyExists,
    TokenGenerator,
    is_valid_token,
)
from conftest import CountingStore, ScriptedSource

TAKEN = 'JW-AAAA-BBBB-CCCC'
FREE = 'JW-K3X9-Q2A7-M4P8'


def _payload(label='Walnut Dining Table', **extra) -> ProjectCreate:
    return ProjectCreate(client_label=label, **extra)


async def _seed(store, token=TAKEN, label='Existing Project'):
    await store.set(PROJECTS, token, {'client_label': label, 'created_at': 1_700_000_000_000})


class RacingStore(InMemoryDocumentStore):
    """Existence check says free, but another request wins the create"""

    async def get(self, collection, key):
        return None

    async def create(self, collection, key, record):
        return False


# ── Manual tokens ───────────────────────────────────────────
class TestManualToken:

    @pytest.mark.asyncio
    async def test_normalizes_before_storing(self, store, generator):
        project = await svc.create_project(store, generator, _payload(token='  jw-k3x9-q2a7-m4p8 '))
        assert project.token == FREE
        assert await store.get(PROJECTS, FREE) is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize('variant', [
        'JW-AAAA-BBBB-CCCC',
        'jw-aaaa-bbbb-cccc',
        ' Jw-AaAa-bBbB-cccc ',
        'JW - AAAA - BBBB - CCCC',
    ])
    async def test_collision_in_any_casing(self, store, generator, variant):
        await _seed(store)
        with pytest.raises(TokenAlreadyExists) as exc_info:
            await svc.create_project(store, generator, _payload(token=variant))
        assert exc_info.value.token == TAKEN
        assert len(await store.query_all(PROJECTS, order_by='created_at')) == 1

    @pytest.mark.asyncio
    async def test_invalid_format_writes_nothing(self, counting_store, generator):
        with pytest.raises(InvalidTokenFormat):
            await svc.create_project(counting_store, generator, _payload(token='jw-123'))
        assert counting_store.calls['create'] == 0
        assert counting_store.calls['set'] == 0

    @pytest.mark.asyncio
    async def test_lost_race_is_reported_as_conflict(self, generator):
        with pytest.raises(TokenAlreadyExists):
            await svc.claim_manual_token(RacingStore(), FREE, {'client_label': 'X'})

    @pytest.mark.asyncio
    async def test_blank_token_falls_back_to_generation(self, store, generator):
        project = await svc.create_project(store, generator, _payload(token='   '))
        assert is_valid_token(project.token)


# ── Generated tokens ────────────────────────────────────────
class TestGeneratedToken:

    @pytest.mark.asyncio
    async def test_generated_token_is_valid_and_stored(self, store, generator):
        project = await svc.create_project(store, generator, _payload())
        assert is_valid_token(project.token)
        assert (await store.get(PROJECTS, project.token))['client_label'] == 'Walnut Dining Table'

    @pytest.mark.asyncio
    async def test_retries_past_a_collision(self, counting_store):
        await _seed(counting_store)
        generator = TokenGenerator(ScriptedSource([TAKEN, TAKEN, FREE]))

        token = await svc.allocate_generated_token(counting_store, generator, {'client_label': 'X'}, 10)

        assert token == FREE
        assert counting_store.calls['get'] == 3
        assert counting_store.calls['create'] == 1

    @pytest.mark.asyncio
    async def test_exhaustion_after_exactly_n_attempts(self, counting_store):
        await _seed(counting_store)
        source = ScriptedSource([TAKEN])

        with pytest.raises(TokenAllocationExhausted) as exc_info:
            await svc.allocate_generated_token(
                counting_store, TokenGenerator(source), {'client_label': 'X'}, 5,
            )

        assert exc_info.value.attempts == 5
        assert source.reads == 5
        assert counting_store.calls['get'] == 5
        assert counting_store.calls['create'] == 0

    @pytest.mark.asyncio
    async def test_default_bound_comes_from_settings(self, counting_store):
        await _seed(counting_store)
        generator = TokenGenerator(ScriptedSource([TAKEN]))

        with pytest.raises(TokenAllocationExhausted) as exc_info:
            await svc.create_project(counting_store, generator, _payload())

        assert exc_info.value.attempts == 10
        # the label check scans with query_all; each attempt is one get
        assert counting_store.calls['get'] == 10
        assert counting_store.calls['create'] == 0

    @pytest.mark.asyncio
    async def test_lost_races_count_as_attempts(self):
        source = ScriptedSource([FREE])
        with pytest.raises(TokenAllocationExhausted):
            await svc.allocate_generated_token(RacingStore(), TokenGenerator(source), {}, 3)
        assert source.reads == 3

    @pytest.mark.asyncio
    async def test_rejects_non_positive_bound(self, store, generator):
        with pytest.raises(ValueError):
            await svc.allocate_generated_token(store, generator, {}, 0)


# ── Token check (admin live feedback) ───────────────────────
@pytest.mark.asyncio
async def test_check_token_reports_validity_and_availability(store):
    await _seed(store)

    taken = await svc.check_token(store, 'jw-aaaa-bbbb-cccc')
    assert (taken.normalized, taken.valid, taken.available) == (TAKEN, True, False)

    free = await svc.check_token(store, FREE.lower())
    assert (free.valid, free.available) == (True, True)

    bad = await svc.check_token(store, 'jw-12')
    assert (bad.normalized, bad.valid, bad.available) == ('JW-12', False, None)


# ── Labels ──────────────────────────────────────────────────
class TestLabels:

    @pytest.mark.asyncio
    async def test_duplicate_label_rejected_before_any_write(self, counting_store, generator):
        await _seed(counting_store, label='Kitchen Remodel')
        with pytest.raises(ProjectNameTaken):
            await svc.create_project(counting_store, generator, _payload('  kitchen REMODEL '))
        assert counting_store.calls['create'] == 0

    @pytest.mark.asyncio
    async def test_rename_to_taken_label_rejected(self, store, generator):
        await svc.create_project(store, generator, _payload('Bookshelf'))
        other = await svc.create_project(store, generator, _payload('Desk'))
        with pytest.raises(ProjectNameTaken):
            await svc.update_project(store, other.token, ProjectUpdate(client_label='BOOKSHELF'))

    @pytest.mark.asyncio
    async def test_recasing_own_label_allowed(self, store, generator):
        project = await svc.create_project(store, generator, _payload('Bookshelf'))
        updated = await svc.update_project(store, project.token, ProjectUpdate(client_label='BookShelf'))
        assert updated.client_label == 'BookShelf'


# ── Lookup / update / delete ────────────────────────────────
class TestProjectLifecycle:

    @pytest.mark.asyncio
    async def test_find_accepts_any_casing(self, store):
        await _seed(store)
        record = await svc.find_project(store, ' jw-aaaa-bbbb-cccc')
        assert record['id'] == TAKEN

    @pytest.mark.asyncio
    async def test_malformed_lookup_skips_the_store(self, counting_store):
        assert await svc.find_project(counting_store, 'not-a-token') is None
        assert counting_store.calls['get'] == 0

    @pytest.mark.asyncio
    async def test_get_missing_project(self, store):
        with pytest.raises(ProjectNotFound):
            await svc.get_project(store, FREE)

    @pytest.mark.asyncio
    async def test_empty_payment_code_removes_pin(self, store, generator):
        project = await svc.create_project(store, generator, _payload(payment_code='4821'))
        assert project.payment_code == '4821'

        updated = await svc.update_project(store, project.token, ProjectUpdate(payment_code=''))

        assert updated.payment_code is None
        assert 'payment_code' not in await store.get(PROJECTS, project.token)

    @pytest.mark.asyncio
    async def test_unset_fields_are_untouched(self, store, generator):
        project = await svc.create_project(
            store, generator, _payload(description='Solid walnut', payment_code='4821'),
        )
        updated = await svc.update_project(store, project.token, ProjectUpdate(deposit_paid=True))
        assert updated.deposit_paid is True
        assert updated.description == 'Solid walnut'
        assert updated.payment_code == '4821'
        assert updated.token == project.token

    def test_token_cannot_be_updated(self):
        with pytest.raises(ValidationError):
            ProjectUpdate(token='JW-ZZZZ-ZZZZ-ZZZZ')

    def test_payment_handles_cannot_be_set(self):
        with pytest.raises(ValidationError):
            ProjectCreate(client_label='X', venmo_handle='someone-else')

    @pytest.mark.asyncio
    async def test_payment_handles_come_from_settings(self, store, generator):
        project = await svc.create_project(store, generator, _payload())
        assert project.venmo_handle == 'test-venmo'
        assert project.paypal_handle == 'testpaypal'

    @pytest.mark.asyncio
    async def test_delete(self, store, generator):
        project = await svc.create_project(store, generator, _payload())
        await svc.delete_project(store, project.token.lower())
        assert await store.get(PROJECTS, project.token) is None
        with pytest.raises(ProjectNotFound):
            await svc.delete_project(store, project.token)

    @pytest.mark.asyncio
    async def test_client_view_hides_links_behind_pin(self, store, generator):
        locked = await svc.create_project(store, generator, _payload('Locked', payment_code='1111'))
        open_ = await svc.create_project(store, generator, _payload('Open'))

        locked_view = await svc.get_client_view(store, locked.token)
        open_view = await svc.get_client_view(store, open_.token)

        assert locked_view.payment_pin_required is True
        assert locked_view.payment is None
        assert open_view.payment_pin_required is False
        assert open_view.payment.venmo_url == 'https://account.venmo.com/u/test-venmo'


# ── Status updates ──────────────────────────────────────────
class TestStatusUpdates:

    @pytest.mark.asyncio
    async def test_add_edit_delete(self, store, generator):
        project = await svc.create_project(store, generator, _payload())

        added = await svc.add_status_update(
            store, project.token, StatusUpdateCreate(title='Glue-up', message='Top is glued.', photos=['a.jpg']),
        )
        assert added.id.startswith('update_')

        edited = await svc.edit_status_update(
            store, project.token, added.id, StatusUpdateEdit(message='Top glued and flattened.'),
        )
        assert edited.title == 'Glue-up'
        assert edited.message == 'Top glued and flattened.'
        assert edited.photos == ['a.jpg']

        await svc.delete_status_update(store, project.token, added.id)
        assert (await svc.get_project(store, project.token)).status_updates == []

    @pytest.mark.asyncio
    async def test_unknown_update_id(self, store, generator):
        project = await svc.create_project(store, generator, _payload())
        with pytest.raises(StatusUpdateNotFound):
            await svc.delete_status_update(store, project.token, 'update_missing')
        with pytest.raises(StatusUpdateNotFound):
            await svc.edit_status_update(store, project.token, 'update_missing', StatusUpdateEdit(title='x'))

    def test_at_most_three_photos(self):
        with pytest.raises(ValidationError):
            StatusUpdateCreate(title='t', message='m', photos=['1', '2', '3', '4'])
