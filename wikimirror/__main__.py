from wikimirror.cli import app

app(prog_name="wikimirror")
