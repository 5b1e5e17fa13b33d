from cuv.cli import app

app()
