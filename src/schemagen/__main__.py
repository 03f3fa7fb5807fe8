from schemagen.cli import app

app(prog_name="schemagen")
