import pytest

from core.api_batch import ApiBatch
from core.errors import PipelineError


def test_send_stores_items_by_key(context, transport):
    transport.responses = {"viewer": {"id": "1"}, "friends": [{"id": "2"}]}
    batch = ApiBatch(context, transport)
    batch.add({"method": "people.get"}, "viewer")
    batch.add({"method": "people.get"}, "friends")
    assert batch.pending == ["viewer", "friends"]

    batch.send()

    assert len(transport.calls) == 1
    assert set(transport.calls[0]) == {"viewer", "friends"}
    assert context.get_data_set("viewer") == {"id": "1"}
    assert context.get_data_set("friends") == [{"id": "2"}]
    assert batch.pending == []


def test_callback_receives_item_instead_of_context(context, transport):
    transport.responses = {"viewer": {"id": "1"}}
    received = []
    batch = ApiBatch(context, transport)
    batch.add({"method": "people.get"}, "viewer", lambda key, item: received.append((key, item)))
    batch.send()

    assert received == [("viewer", {"id": "1"})]
    assert context.get_data_set("viewer") is None


def test_empty_batch_sends_nothing(context, transport):
    ApiBatch(context, transport).send()
    assert transport.calls == []


def test_missing_transport_is_an_error(context):
    batch = ApiBatch(context)
    batch.add({"method": "people.get"}, "viewer")
    with pytest.raises(PipelineError):
        batch.send()


def test_missing_item_does_not_clobber_existing_data(context, transport):
    context.put_data_set("viewer", "cached")
    batch = ApiBatch(context, transport)
    batch.add({"method": "people.get"}, "viewer")
    batch.send()
    assert context.get_data_set("viewer") == "cached"
