from blockfind.cli import run

run()
