from pacmap.cli import app

app()
