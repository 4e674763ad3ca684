import logging

import pytest

from pubsub_bridge import PubSub, RemoteBridge, ReplyEnvelope, Subscription
from pubsub_bridge.transport import Window, origin_of


FRAME_URL = "https://app.example.com/widgets/chart.html"


def test_origin_of_strips_path_and_keeps_port():
    assert origin_of("https://app.example.com:8443/a/b?c=1") == "https://app.example.com:8443"
    assert origin_of("not a url") == ""


def test_send_prefers_matching_child_frame(host: Window):
    frame = host.add_frame(FRAME_URL)
    host.opener = Window("https://opener.example.com/")
    bridge = RemoteBridge(host)
    record = Subscription(observer=FRAME_URL, payload={"args": "signin"})

    assert bridge.send(record, {"user": "a"}) is True

    assert len(frame.inbox) == 1
    assert frame.inbox[0].data == {"observer": FRAME_URL, "payload": {"args": "signin"}, "data": {"user": "a"}}
    assert host.opener.inbox == []


def test_child_frame_delivery_is_scoped_to_current_origin(host: Window):
    foreign = host.add_frame("https://other.example.org/frame.html")
    bridge = RemoteBridge(host)

    delivered = bridge.send(Subscription(observer="https://other.example.org/frame.html", payload={}))

    assert delivered is False
    assert foreign.inbox == []


def test_frame_is_matched_on_its_current_location(host: Window):
    frame = host.add_frame("https://app.example.com/step1.html")
    bridge = RemoteBridge(host)
    frame.navigate("https://app.example.com/step2.html")

    assert bridge.send(Subscription(observer="https://app.example.com/step2.html", payload={})) is True
    assert len(frame.inbox) == 1


def test_falls_back_to_open_opener_with_wildcard_origin():
    opener = Window("https://idp.example.net/login")
    popup = opener.open("https://app.example.com/callback")
    bridge = RemoteBridge(popup)

    envelope = ReplyEnvelope(response=42, observer="https://idp.example.net/login", info={"getter": "app.x"})
    assert bridge.send(envelope) is True

    assert opener.inbox[0].data == {"response": 42, "observer": "https://idp.example.net/login", "info": {"getter": "app.x"}}
    assert opener.inbox[0].origin == "https://app.example.com"


def test_closed_opener_and_no_frame_logs_warning(caplog: pytest.LogCaptureFixture):
    opener = Window("https://idp.example.net/login")
    popup = opener.open("https://app.example.com/callback")
    opener.close()
    bridge = RemoteBridge(popup)

    with caplog.at_level(logging.WARNING, logger="pubsub_bridge"):
        assert bridge.send(Subscription(observer=FRAME_URL, payload={})) is False

    assert any("unfound target" in rec.message for rec in caplog.records)


def test_ambiguous_frames_fall_back_to_opener(host: Window):
    host.add_frame(FRAME_URL)
    host.add_frame(FRAME_URL)
    host.opener = Window("https://opener.example.com/")
    bridge = RemoteBridge(host)

    assert bridge.send(Subscription(observer=FRAME_URL, payload={})) is True
    assert len(host.opener.inbox) == 1


def test_publish_routes_remote_records_through_bridge(host: Window):
    frame = host.add_frame(FRAME_URL)
    bus = PubSub(bridge=RemoteBridge(host))
    local = []
    bus.subscribe("signin", FRAME_URL, {"method": "app.pubsub.subscribe", "args": "signin"})
    bus.subscribe("signin", "local", local.append)

    bus.publish("signin", {"user": "a"})

    assert local == [{"user": "a"}]
    assert frame.inbox[0].data["data"] == {"user": "a"}
    assert frame.inbox[0].data["payload"]["args"] == "signin"


def test_posted_messages_are_copies(host: Window):
    frame = host.add_frame(FRAME_URL)
    data = {"items": [1, 2]}
    RemoteBridge(host).send(Subscription(observer=FRAME_URL, payload={}), data)

    data["items"].append(3)
    assert frame.inbox[0].data["data"] == {"items": [1, 2]}
