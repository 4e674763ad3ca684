from pubsub_bridge.registry import Registry, Subscription


def test_registry_is_seeded_with_default_bucket():
    reg = Registry()
    assert reg.event_names() == ["default"]
    assert reg.list("default") == []
    assert reg.list("missing") is None


def test_append_keeps_insertion_order_without_dedup():
    reg = Registry(seed=())
    a = Subscription(observer="a", handler=print)
    reg.append("evt", a)
    reg.append("evt", a)
    reg.append("evt", Subscription(observer="b", handler=print))

    assert [s.observer for s in reg.list("evt")] == ["a", "a", "b"]


def test_remove_by_observer_stops_after_first_match():
    reg = Registry(seed=())
    for observer in ("a", "b", "a"):
        reg.append("evt", Subscription(observer=observer, handler=print))

    assert reg.remove_by_observer("evt", "a") is True
    assert [s.observer for s in reg.list("evt")] == ["b", "a"]
    assert reg.remove_by_observer("evt", "zzz") is False
    assert reg.remove_by_observer("unknown", "a") is False


def test_remove_observer_everywhere_counts_removed():
    reg = Registry(seed=("x", "y"))
    reg.append("x", Subscription(observer="a", handler=print))
    reg.append("y", Subscription(observer="a", handler=print))
    reg.append("y", Subscription(observer="b", handler=print))

    assert reg.remove_observer_everywhere("a") == 2
    assert reg.list("x") == []
    assert [s.observer for s in reg.list("y")] == ["b"]


def test_snapshot_is_isolated_from_later_mutation():
    reg = Registry(seed=())
    reg.append("evt", Subscription(observer="a", handler=print))
    snap = reg.snapshot("evt")
    reg.append("evt", Subscription(observer="b", handler=print))

    assert len(snap) == 1
    assert reg.snapshot("unknown") == []


def test_reset_preserves_keys():
    reg = Registry(seed=("default",))
    reg.append("evt", Subscription(observer="a", handler=print))
    reg.reset()

    assert reg.as_dict() == {"default": [], "evt": []}
    assert "evt" in reg


def test_remote_subscription_wire_form():
    record = Subscription(observer="https://x.example.com/", payload={"args": "evt"})
    assert record.is_remote is True
    assert record.to_message() == {"observer": "https://x.example.com/", "payload": {"args": "evt"}}
    assert Subscription(observer="local", handler=print).is_remote is False
