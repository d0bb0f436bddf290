"""
In-memory repository tests

Covers CRUD, querying, batch operations and snapshot transactions.
"""

import pytest

from repokit import (
    FindOptions, OrderBy, MemoryRepository, BatchOperationError, DuplicateRecordError
)

from sample_models import Item


async def seed(repo):
    await repo.create({"name": "bolt", "quantity": 5, "category": "hardware"})
    await repo.create({"name": "anchor", "quantity": 2, "category": "hardware"})
    await repo.create({"name": "paint", "quantity": 9, "category": None})
    await repo.create({"name": "brush", "quantity": 2, "category": "tools"})


class TestMemoryCrud:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_round_trips(self, items):
        created = await items.create({"name": "bolt", "quantity": 3})

        assert created.id
        assert created.name == "bolt"
        assert created.quantity == 3

        found = await items.find_by_id(created.id)
        assert found == created

    @pytest.mark.asyncio
    async def test_create_keeps_supplied_id(self, items):
        created = await items.create({"id": "item-1", "name": "bolt"})

        assert created.id == "item-1"
        assert (await items.find_by_id("item-1")).name == "bolt"

    @pytest.mark.asyncio
    async def test_create_rejects_duplicate_id(self, items):
        await items.create({"id": "item-1", "name": "bolt"})

        with pytest.raises(DuplicateRecordError):
            await items.create({"id": "item-1", "name": "nut"})

        listing = await items.find_all()
        assert [(item.id, item.name) for item in listing] == [("item-1", "bolt")]

    @pytest.mark.asyncio
    async def test_create_ignores_unknown_fields(self, items):
        created = await items.create({"name": "bolt", "colour": "red"})

        assert not hasattr(created, "colour")

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, items):
        created = await items.create({"name": "bolt", "quantity": 3, "category": "hardware"})

        updated = await items.update(created.id, {"quantity": 7})

        assert updated.id == created.id
        assert updated.quantity == 7
        assert updated.name == "bolt"
        assert updated.category == "hardware"
        assert (await items.find_by_id(created.id)).quantity == 7

    @pytest.mark.asyncio
    async def test_update_never_changes_id(self, items):
        created = await items.create({"name": "bolt"})

        updated = await items.update(created.id, {"id": "other", "name": "nut"})

        assert updated.id == created.id
        assert await items.find_by_id("other") is None

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, items):
        assert await items.update("missing", {"name": "nut"}) is None

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, items):
        created = await items.create({"name": "bolt"})

        await items.delete(created.id)
        await items.delete(created.id)
        await items.delete("never-existed")

        assert await items.find_by_id(created.id) is None
        assert await items.find_all() == []

    @pytest.mark.asyncio
    async def test_find_all_preserves_insertion_order(self, items):
        await seed(items)

        names = [item.name for item in await items.find_all()]

        assert names == ["bolt", "anchor", "paint", "brush"]

    @pytest.mark.asyncio
    async def test_find_all_returns_a_copy(self, items):
        await seed(items)

        listing = await items.find_all()
        listing.clear()

        assert len(await items.find_all()) == 4


class TestMemoryQueries:

    @pytest.mark.asyncio
    async def test_find_one_returns_first_match(self, items):
        await seed(items)

        found = await items.find_one({"category": "hardware"})

        assert found.name == "bolt"

    @pytest.mark.asyncio
    async def test_find_one_without_match(self, items):
        await seed(items)

        assert await items.find_one({"category": "garden"}) is None

    @pytest.mark.asyncio
    async def test_filter_entries_are_anded(self, items):
        await seed(items)

        results = await items.find({"quantity": 2, "category": "tools"})

        assert [item.name for item in results] == ["brush"]

    @pytest.mark.asyncio
    async def test_filter_on_unknown_field_matches_nothing(self, items):
        await seed(items)

        assert await items.find({"colour": "red"}) == []

    @pytest.mark.asyncio
    async def test_empty_filter_matches_everything(self, items):
        await seed(items)

        assert len(await items.find({})) == 4
        assert len(await items.find()) == 4

    @pytest.mark.asyncio
    async def test_pagination_is_offset_then_limit(self, items):
        await seed(items)

        page = await items.find(options=FindOptions(limit=2, offset=1))

        assert [item.name for item in page] == ["anchor", "paint"]

    @pytest.mark.asyncio
    async def test_zero_limit_returns_nothing(self, items):
        await seed(items)

        assert await items.find(options=FindOptions(limit=0)) == []

    @pytest.mark.asyncio
    async def test_offset_past_end(self, items):
        await seed(items)

        assert await items.find(options=FindOptions(offset=10)) == []

    @pytest.mark.asyncio
    async def test_order_ascending_is_stable(self, items):
        await seed(items)

        results = await items.find(options=FindOptions(order_by=OrderBy.asc("quantity")))

        assert [item.name for item in results] == ["anchor", "brush", "bolt", "paint"]

    @pytest.mark.asyncio
    async def test_order_descending(self, items):
        await seed(items)

        results = await items.find(options=FindOptions(order_by=OrderBy.desc("quantity")))

        assert [item.name for item in results] == ["paint", "bolt", "anchor", "brush"]

    @pytest.mark.asyncio
    async def test_none_values_sort_last_ascending(self, items):
        await seed(items)

        ascending = await items.find(options=FindOptions(order_by=OrderBy.asc("category")))
        descending = await items.find(options=FindOptions(order_by=OrderBy.desc("category")))

        assert ascending[-1].name == "paint"
        assert descending[0].name == "paint"

    @pytest.mark.asyncio
    async def test_filter_order_and_page_together(self, items):
        await seed(items)

        results = await items.find(
            {"category": "hardware"},
            FindOptions(limit=1, order_by=OrderBy.asc("name"))
        )

        assert [item.name for item in results] == ["anchor"]

    def test_negative_options_are_rejected(self):
        with pytest.raises(ValueError):
            FindOptions(limit=-1)
        with pytest.raises(ValueError):
            FindOptions(offset=-1)


class TestMemoryBatch:

    @pytest.mark.asyncio
    async def test_create_many_preserves_input_order(self, items):
        created = await items.create_many([{"name": "a"}, {"name": "b"}, {"name": "c"}])

        assert [item.name for item in created] == ["a", "b", "c"]
        assert len({item.id for item in created}) == 3

    @pytest.mark.asyncio
    async def test_update_many_yields_none_for_missing_ids(self, items):
        first = await items.create({"name": "a"})
        second = await items.create({"name": "b"})

        results = await items.update_many([
            (first.id, {"quantity": 1}),
            ("missing", {"quantity": 2}),
            (second.id, {"quantity": 3}),
        ])

        assert results[0].quantity == 1
        assert results[1] is None
        assert results[2].quantity == 3

    @pytest.mark.asyncio
    async def test_delete_many_skips_missing_ids(self, items):
        first = await items.create({"name": "a"})
        second = await items.create({"name": "b"})

        await items.delete_many([first.id, "missing"])

        remaining = await items.find_all()
        assert [item.id for item in remaining] == [second.id]


    @pytest.mark.asyncio
    async def test_create_many_reports_failures_after_trying_every_item(self, items):
        await items.create({"id": "taken", "name": "existing"})

        with pytest.raises(BatchOperationError) as exc_info:
            await items.create_many([
                {"name": "a"},
                {"id": "taken", "name": "clash"},
                {"name": "c"},
            ])

        error = exc_info.value
        assert [index for index, _ in error.errors] == [1]
        assert isinstance(error.errors[0][1], DuplicateRecordError)
        assert error.results[0].name == "a"
        assert error.results[1] is None
        assert error.results[2].name == "c"
        assert [item.name for item in await items.find_all()] == ["existing", "a", "c"]

    @pytest.mark.asyncio
    async def test_update_many_continues_past_malformed_element(self, items):
        first = await items.create({"name": "a"})
        second = await items.create({"name": "b"})

        with pytest.raises(BatchOperationError) as exc_info:
            await items.update_many([
                (first.id, {"quantity": 1}),
                ("bad",),
                (second.id, {"quantity": 3}),
            ])

        assert [index for index, _ in exc_info.value.errors] == [1]
        assert isinstance(exc_info.value.errors[0][1], ValueError)
        assert (await items.find_by_id(first.id)).quantity == 1
        assert (await items.find_by_id(second.id)).quantity == 3


class TestMemoryTransactions:

    @pytest.mark.asyncio
    async def test_rollback_restores_snapshot(self, items):
        kept = await items.create({"name": "kept"})

        await items.begin_transaction()
        await items.create({"name": "temporary"})
        await items.update(kept.id, {"quantity": 99})
        await items.rollback_transaction()

        listing = await items.find_all()
        assert [item.name for item in listing] == ["kept"]
        assert listing[0].quantity == 0

    @pytest.mark.asyncio
    async def test_rollback_restores_deleted_records(self, items):
        kept = await items.create({"name": "kept"})

        await items.begin_transaction()
        await items.delete(kept.id)
        await items.rollback_transaction()

        assert await items.find_by_id(kept.id) is not None

    @pytest.mark.asyncio
    async def test_commit_keeps_changes(self, items):
        await items.begin_transaction()
        await items.create({"name": "kept"})
        await items.commit_transaction()

        assert items.transaction_depth == 0
        assert len(await items.find_all()) == 1

    @pytest.mark.asyncio
    async def test_nested_rollback_only_undoes_inner_level(self, items):
        await items.begin_transaction()
        await items.create({"name": "outer"})
        await items.begin_transaction()
        await items.create({"name": "inner"})
        await items.rollback_transaction()
        await items.commit_transaction()

        assert [item.name for item in await items.find_all()] == ["outer"]

    @pytest.mark.asyncio
    async def test_outer_rollback_undoes_committed_inner_level(self, items):
        await items.begin_transaction()
        await items.begin_transaction()
        await items.create({"name": "inner"})
        await items.commit_transaction()
        await items.rollback_transaction()

        assert await items.find_all() == []

    @pytest.mark.asyncio
    async def test_commit_and_rollback_without_begin_are_no_ops(self, items):
        await items.create({"name": "kept"})

        await items.commit_transaction()
        await items.rollback_transaction()

        assert len(await items.find_all()) == 1
        assert items.transaction_depth == 0

    @pytest.mark.asyncio
    async def test_transaction_context_rolls_back_on_error(self, items):
        with pytest.raises(RuntimeError):
            async with items.transaction():
                await items.create({"name": "temporary"})
                raise RuntimeError("boom")

        assert await items.find_all() == []
        assert items.transaction_depth == 0

    @pytest.mark.asyncio
    async def test_transaction_context_commits(self, items):
        async with items.transaction() as repo:
            await repo.create({"name": "kept"})

        assert len(await items.find_all()) == 1

    @pytest.mark.asyncio
    async def test_instances_do_not_share_state(self):
        first = MemoryRepository(Item)
        second = MemoryRepository(Item)

        await first.create({"name": "only-here"})

        assert await second.find_all() == []
