import click
import uvicorn

@click.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000, type=int)
@click.option("--reload", is_flag=True)
def serve(host, port, reload):
    uvicorn.run("coursehub_backend.server:app", host=host, port=port, reload=reload, workers=1)
