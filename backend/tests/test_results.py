"""
Citizen Notify — Result and Iterator Helper Tests

What we test:
    ✅ Success / Failure map and unwrap
    ✅ map_result_iterator, reduce_result_iterator, iterator_to_list
    ✅ DocumentQuery validation and rendering
"""

import pytest

from citizen_notify.exceptions import StoreError
from citizen_notify.results import Failure, Success
from citizen_notify.store.base import (
    DocumentQuery,
    iterator_to_list,
    map_result_iterator,
    reduce_result_iterator,
)


class TestResult:
    def test_success(self):
        result = Success(2).map(lambda v: v * 10)

        assert result.is_success
        assert result.unwrap() == 20

    def test_failure_map_is_identity(self):
        failure = Failure(StoreError("boom"))

        assert failure.map(lambda v: v * 10) is failure
        assert not failure.is_success

    def test_failure_unwrap_raises(self):
        with pytest.raises(StoreError):
            Failure(StoreError("boom")).unwrap()


class TestIteratorHelpers:
    @pytest.mark.asyncio
    async def test_map(self, result_iterator):
        error = StoreError("boom")
        mapped = map_result_iterator(
            result_iterator([Success(1), Failure(error), Success(3)]), lambda v: v + 1
        )

        assert [item async for item in mapped] == [Success(2), Failure(error), Success(4)]

    @pytest.mark.asyncio
    async def test_reduce(self, result_iterator):
        total = await reduce_result_iterator(
            result_iterator([Success(1), Success(2), Success(3)]), lambda acc, v: acc + v, 0
        )

        assert total == Success(6)

    @pytest.mark.asyncio
    async def test_reduce_stops_at_first_failure(self):
        error = StoreError("boom")
        consumed = []

        async def items():
            for item in (Success(1), Failure(error), Success(3)):
                consumed.append(item)
                yield item

        result = await reduce_result_iterator(items(), lambda acc, v: acc + v, 0)

        assert result == Failure(error)
        assert len(consumed) == 2

    @pytest.mark.asyncio
    async def test_to_list(self, result_iterator):
        assert await iterator_to_list(result_iterator([Success("a"), Success("b")])) == Success(
            ["a", "b"]
        )

    @pytest.mark.asyncio
    async def test_to_list_empty(self, result_iterator):
        assert await iterator_to_list(result_iterator([])) == Success([])


class TestDocumentQuery:
    def test_text(self):
        query = DocumentQuery(
            filters=(("senderServiceId", "@modelId"), ("recipientFiscalCode", "@partitionKey")),
            parameters={"@modelId": "x:y", "@partitionKey": "x"},
            order_by=(("version", True),),
            top=1,
        )

        assert query.text == (
            "SELECT TOP 1 * FROM m WHERE (m.senderServiceId = @modelId AND "
            "m.recipientFiscalCode = @partitionKey) ORDER BY m.version DESC"
        )
        assert query.value_of("@partitionKey") == "x"

    def test_select_all(self):
        assert DocumentQuery().text == "SELECT * FROM m"

    def test_unknown_parameter(self):
        with pytest.raises(ValueError):
            DocumentQuery(filters=(("fiscalCode", "@missing"),))

    def test_top_must_be_positive(self):
        with pytest.raises(ValueError):
            DocumentQuery(top=0)
