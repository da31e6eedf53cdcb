import pytest

from sapcloud_client.auth import AuthEvent, AuthEventKind, AuthEventStream, AuthState


def _event(state: AuthState) -> AuthEvent:
    return AuthEvent(AuthEventKind.STATE_CHANGED, state)


@pytest.mark.asyncio
async def test_subscribers_receive_published_events() -> None:
    stream = AuthEventStream()
    subscription = stream.subscribe()
    stream.publish(_event(AuthState.KEY_MATERIAL_READY))
    stream.publish(_event(AuthState.CHALLENGE_REQUESTED))

    first = await subscription.__anext__()
    second = await subscription.__anext__()
    assert [first.state, second.state] == [AuthState.KEY_MATERIAL_READY, AuthState.CHALLENGE_REQUESTED]


@pytest.mark.asyncio
async def test_closed_subscription_stops_iteration() -> None:
    stream = AuthEventStream()
    subscription = stream.subscribe()
    subscription.close()
    assert stream.subscriber_count == 0
    received = [event async for event in subscription]
    assert received == []


def test_replay_primes_new_subscribers_with_backlog() -> None:
    stream = AuthEventStream(backlog=2)
    for state in (AuthState.IDLE, AuthState.KEY_MATERIAL_READY, AuthState.CHALLENGE_REQUESTED):
        stream.publish(_event(state))
    subscription = stream.subscribe(replay=True)
    assert subscription.get_nowait().state is AuthState.KEY_MATERIAL_READY
    assert subscription.get_nowait().state is AuthState.CHALLENGE_REQUESTED
    assert subscription.get_nowait() is None


def test_full_queue_drops_oldest_event() -> None:
    stream = AuthEventStream(max_queue=1)
    subscription = stream.subscribe()
    stream.publish(_event(AuthState.SIGNED))
    stream.publish(_event(AuthState.VERIFY_REQUESTED))
    assert subscription.get_nowait().state is AuthState.VERIFY_REQUESTED


def test_listeners_are_called_and_isolated() -> None:
    stream = AuthEventStream()
    seen: list[AuthState] = []

    def broken(_event: AuthEvent) -> None:
        raise RuntimeError("listener bug")

    stream.add_listener(broken)
    stream.add_listener(lambda event: seen.append(event.state))
    stream.publish(_event(AuthState.AUTHENTICATED))
    assert seen == [AuthState.AUTHENTICATED]

    stream.remove_listener(broken)
    stream.remove_listener(broken)
