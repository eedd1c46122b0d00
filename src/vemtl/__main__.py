from vemtl.cli import app

app()
