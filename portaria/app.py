import os
import logging

DEFAULT_LOG_LEVEL = 'INFO'

log_level = os.environ.get('LOG_LEVEL', DEFAULT_LOG_LEVEL).upper()

if log_level not in logging._nameToLevel:
    log_level = DEFAULT_LOG_LEVEL

logging.basicConfig(
    format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
    level=log_level,
    datefmt='%Y-%m-%d %H:%M:%S',
)

import asyncio
import uvicorn
import socketio
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from portaria.utils.config import CONFIG
from portaria.controller import GateController
from portaria.objects.display_state import DisplayState
from portaria.objects.device_config import WIFI_MODE_STATION

log = logging.getLogger('main')

HOST = os.environ.get('HOST', CONFIG.host)
PORT = int(os.environ.get('PORT', str(CONFIG.port)))

sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins='*')

app = FastAPI()
controller = GateController(CONFIG)


class EndpointBody(BaseModel):
    url: str


class DeviceConfigBody(BaseModel):
    ssid: str
    password: str = ''
    hostname: str = ''
    wifiMode: str = WIFI_MODE_STATION


async def publish_display(display: DisplayState) -> None:
    await sio.emit('display', display.to_dict(json_friendly=True))

controller.loop.set_publisher(publish_display)


@app.get('/api/v1/health')
async def get_health():
    return 'I\'m healthy!'

@app.get('/api/v1/state')
async def get_state():
    payload = controller.get_display().to_dict(json_friendly=True)
    payload['server'] = controller.server_endpoint
    payload['commandsEnabled'] = controller.commands_enabled
    payload['timedActions'] = {
        action: controller.get_timed_action_remaining(action)
        for action in controller.state.tracker.actions
    }
    return payload

@app.get('/api/v1/connection')
async def get_connection():
    return controller.get_connection_state()

@app.get('/api/v1/sensors/{name}')
async def get_sensor(name: str):
    try:
        return {'name': name, 'value': controller.get_sensor_value(name)}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

@app.get('/api/v1/timed-actions/{action}')
async def get_timed_action(action: str):
    try:
        return {'action': action, 'remaining': controller.get_timed_action_remaining(action)}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

@app.post('/api/v1/commands/{peripheral}/{action}')
async def post_command(peripheral: str, action: str):
    log.info(f'Recieved command \'{action}\' for \'{peripheral}\'.')
    try:
        controller.issue_command(peripheral, action)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {'accepted': controller.commands_enabled}

@app.put('/api/v1/endpoint')
async def put_endpoint(body: EndpointBody):
    controller.set_server_endpoint(body.url)
    return {'server': controller.server_endpoint}

@app.post('/api/v1/pause')
async def post_pause():
    controller.pause()
    return {'commandsEnabled': controller.commands_enabled}

@app.post('/api/v1/resume')
async def post_resume():
    controller.resume()
    return {'commandsEnabled': controller.commands_enabled}

@app.post('/api/v1/config')
async def post_config(body: DeviceConfigBody):
    try:
        controller.save_config(body.ssid, body.password, body.hostname, body.wifiMode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {'sent': bool(controller.server_endpoint)}

asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)

@sio.on('connect')
async def handle_connect(sid, environ):
    log.info(f'View \'{sid}\' connected.')
    await sio.emit('display', controller.get_display().to_dict(json_friendly=True), to=sid)

@sio.on('disconnect')
async def handle_disconnect(sid, reason=None):
    log.info(f'View \'{sid}\' disconnected, reason: {str(reason)}')

async def main():
    try:
        log.info('Starting polling loop...')
        controller.start()

        log.info(f'Listening at http://{HOST}:{PORT}...')
        uvicorn_config = uvicorn.Config(asgi_app,
                                        host=HOST,
                                        port=PORT,
                                        log_config=None,
                                        log_level=None,
                                        access_log=False)
        uvicorn_server = uvicorn.Server(uvicorn_config)
        await uvicorn_server.serve()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    except Exception as e:
        log.error(f'Unexpected error occured: {e}')
    finally:
        log.info('Shutting down...')
        await controller.close()

def run():
    asyncio.run(main())

if __name__ == '__main__':
    run()
