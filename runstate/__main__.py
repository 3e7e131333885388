from dotenv import load_dotenv

from runstate.cli.commands import cli_app

if __name__ == "__main__":
    load_dotenv()
    cli_app()  # type: ignore
