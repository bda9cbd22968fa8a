from stackrunner.cli import run

run()
