import asyncio

from fake_device import FakeDevice, make_config
from portaria.controller import GateController
from portaria.objects.timed_actions import OPEN_GATE


def test_first_successful_probe_switches_to_polling():
    async def scenario():
        async with FakeDevice() as device:
            controller = GateController(make_config(server=device.url))
            try:
                await controller.loop.tick()
                await controller.http.drain()
                assert controller.get_connection_state()['connected'] is True
                assert device.find('/sensor') == []

                await controller.loop.tick()
                await controller.http.drain()
            finally:
                await controller.close()
            return device

    device = asyncio.run(scenario())
    assert sorted(r.query['id'] for r in device.find('/sensor', 'GET')) == ['1', '2']


def test_disconnected_tick_only_probes():
    async def scenario():
        published = []
        async with FakeDevice() as device:
            device.status_code = 500
            controller = GateController(make_config(server=device.url), publish=published.append)
            controller.state.tracker.start(OPEN_GATE)
            try:
                for _ in range(3):
                    await controller.loop.tick()
                    await controller.http.drain()
            finally:
                await controller.close()
            return controller, device, published

    controller, device, published = asyncio.run(scenario())
    assert len(device.find('/status')) == 3
    assert device.find('/sensor') == []
    assert controller.get_timed_action_remaining(OPEN_GATE) == 2
    assert published == []


def test_tick_publishes_derived_flags():
    async def scenario():
        published = []

        async def publish(display):
            published.append(display)

        async with FakeDevice() as device:
            device.status_body = 'Ok'
            device.sensor_values = {'1': '0', '2': '1'}
            controller = GateController(make_config(server=device.url), publish=publish)
            try:
                # probe, then two polling ticks: the second sees the first reads
                for _ in range(3):
                    await controller.loop.tick()
                    await controller.http.drain()
            finally:
                await controller.close()
            return published

    published = asyncio.run(scenario())
    assert len(published) == 2
    first, second = published
    assert first.bell_ringing is False
    assert first.door_open is False
    assert second.bell_ringing is True
    assert second.door_open is True
    assert second.connected is True
    assert second.lines == ['Ok']


def test_tick_releases_expired_gate():
    async def scenario():
        async with FakeDevice() as device:
            controller = GateController(make_config(server=device.url))
            try:
                await controller.loop.tick()
                await controller.http.drain()
                controller.state.tracker.start(OPEN_GATE)
                await controller.http.drain()
                for _ in range(4):
                    await controller.loop.tick()
                await controller.http.drain()
            finally:
                await controller.close()
            return device

    device = asyncio.run(scenario())
    assert [r.body for r in device.find('/actuator1')] == ['action=on', 'action=off']


def test_start_keeps_a_single_task():
    async def scenario():
        controller = GateController(make_config())
        try:
            controller.loop.start()
            first = controller.loop._task
            controller.loop.start()
            second = controller.loop._task
            await asyncio.gather(first, return_exceptions=True)
            assert first.cancelled()
            assert first is not second
            assert controller.loop.running

            controller.loop.stop()
            await asyncio.gather(second, return_exceptions=True)
            assert second.cancelled()
            assert not controller.loop.running
        finally:
            await controller.close()

    asyncio.run(scenario())


def test_loop_ticks_on_interval():
    async def scenario():
        controller = GateController(make_config(refresh_interval_ms=10))
        try:
            controller.loop.start()
            await asyncio.sleep(0.2)
            controller.loop.stop()
        finally:
            await controller.close()
        return controller

    assert asyncio.run(scenario()).loop.ticks >= 2


def test_endpoint_change_publishes_disconnected_display():
    async def scenario():
        published = []
        async with FakeDevice() as device:
            controller = GateController(make_config(server=device.url), publish=published.append)
            try:
                for _ in range(2):
                    await controller.loop.tick()
                    await controller.http.drain()
                assert published[-1].connected is True
                assert published[-1].lines == ['Ok']

                controller.set_server_endpoint('http://127.0.0.1:1/')
                for _ in range(3):
                    await controller.loop.tick()
                    await controller.http.drain()
            finally:
                await controller.close()
            return published

    published = asyncio.run(scenario())
    assert published[-1].connected is False
    assert published[-1].lines == []
    assert published[-1].status_text == ''


def test_publish_now_schedules_async_publisher():
    async def scenario():
        published = []

        async def publish(display):
            published.append(display)

        controller = GateController(make_config(), publish=publish)
        try:
            controller.loop.publish_now()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
        finally:
            await controller.close()
        return published

    published = asyncio.run(scenario())
    assert len(published) == 1
    assert published[0].connected is False


def test_publish_now_without_publisher_is_noop():
    controller = GateController(make_config())
    controller.loop.publish_now()
