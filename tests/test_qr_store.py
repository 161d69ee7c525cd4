"""QrCodeStore tests: minting, lookup and the blank → bound transition."""

import uuid

import pytest
from sqlmodel import select

from app.core.errors import AlreadyClaimed, InvalidArgument, NotFound
from app.models.cage import CageCreate
from app.models.qr_code import QrCode
from app.models.tenant import Tenant
from app.services.cages import CageCreator
from app.services.qr_store import QrCodeStore, blank_payload, cage_payload


async def _count_codes(session) -> int:
    result = await session.execute(select(QrCode))
    return len(result.scalars().all())


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [1, 7, 20])
async def test_mint_blank_returns_exactly_count(session, tenant, count):
    store = QrCodeStore(session, tenant.id)
    codes = await store.mint_blank(count)

    assert len(codes) == count
    assert all(c.is_blank and c.bound_resource_id is None for c in codes)
    assert all(c.tenant_id == tenant.id for c in codes)


@pytest.mark.asyncio
async def test_minted_ids_unique_across_store(session, tenant):
    store = QrCodeStore(session, tenant.id)
    first = await store.mint_blank(20)
    second = await store.mint_blank(20)

    ids = {c.id for c in first + second}
    assert len(ids) == 40
    assert await _count_codes(session) == 40


@pytest.mark.asyncio
async def test_blank_payload_derived_from_id(session, tenant):
    store = QrCodeStore(session, tenant.id)
    codes = await store.mint_blank(3)

    for code in codes:
        assert code.payload == blank_payload(code.id)
        assert code.payload.endswith(f"/qr/blank/{code.id}")


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, -1, 21, 500])
async def test_mint_blank_out_of_range_mutates_nothing(session, tenant, count):
    store = QrCodeStore(session, tenant.id)
    with pytest.raises(InvalidArgument):
        await store.mint_blank(count)
    assert await _count_codes(session) == 0


@pytest.mark.asyncio
async def test_get_by_id_unknown(session, tenant):
    store = QrCodeStore(session, tenant.id)
    with pytest.raises(NotFound):
        await store.get_by_id(uuid.uuid4())


@pytest.mark.asyncio
async def test_codes_are_invisible_to_other_tenants(session, tenant):
    other = Tenant(name="Other Labs", slug="other-labs-store")
    session.add(other)
    await session.commit()

    [code] = await QrCodeStore(session, tenant.id).mint_blank(1)

    with pytest.raises(NotFound):
        await QrCodeStore(session, other.id).get_by_id(code.id)


@pytest.mark.asyncio
async def test_mark_claimed_binds_once(session, tenant):
    store = QrCodeStore(session, tenant.id)
    [code] = await store.mint_blank(1)
    cage = await CageCreator(session, tenant.id).create(CageCreate(cage_number="S-1"))

    bound = await store.mark_claimed(code.id, cage.id)
    assert bound.is_blank is False
    assert bound.bound_resource_id == cage.id
    assert bound.claimed_at is not None

    other_cage = await CageCreator(session, tenant.id).create(CageCreate(cage_number="S-2"))
    with pytest.raises(AlreadyClaimed) as exc_info:
        await store.mark_claimed(code.id, other_cage.id)
    assert exc_info.value.bound_resource_id == cage.id

    # No rebinding happened
    assert (await store.get_by_id(code.id)).bound_resource_id == cage.id


@pytest.mark.asyncio
async def test_mark_claimed_unknown_code(session, tenant):
    store = QrCodeStore(session, tenant.id)
    with pytest.raises(NotFound):
        await store.mark_claimed(uuid.uuid4(), uuid.uuid4())


@pytest.mark.asyncio
async def test_mint_for_cage_is_bound(session, tenant):
    cage = await CageCreator(session, tenant.id).create(CageCreate(cage_number="S-3"))
    code = await QrCodeStore(session, tenant.id).mint_for_cage(cage.id)

    assert code.is_blank is False
    assert code.bound_resource_id == cage.id
    assert code.payload == cage_payload(cage.id)


@pytest.mark.asyncio
async def test_mint_for_unknown_cage(session, tenant):
    with pytest.raises(NotFound):
        await QrCodeStore(session, tenant.id).mint_for_cage(uuid.uuid4())


@pytest.mark.asyncio
async def test_list_and_counts(session, tenant):
    store = QrCodeStore(session, tenant.id)
    codes = await store.mint_blank(4)
    cage = await CageCreator(session, tenant.id).create(CageCreate(cage_number="S-4"))
    await store.mark_claimed(codes[0].id, cage.id)

    assert len(await store.list_codes()) == 4
    assert len(await store.list_codes(blank=True)) == 3
    assert [c.id for c in await store.list_codes(blank=False)] == [codes[0].id]

    stats = await store.counts()
    assert (stats.total, stats.blank, stats.claimed) == (4, 3, 1)


@pytest.mark.asyncio
async def test_get_by_payload(session, tenant):
    store = QrCodeStore(session, tenant.id)
    [code] = await store.mint_blank(1)

    assert (await store.get_by_payload(code.payload)).id == code.id
    with pytest.raises(NotFound):
        await store.get_by_payload("https://elsewhere.example/qr/blank/nope")
