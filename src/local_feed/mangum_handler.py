"""AWS Lambda handler using Mangum for FastAPI."""

from mangum import Mangum

from local_feed.api.server import app

handler = Mangum(app, lifespan="off")
