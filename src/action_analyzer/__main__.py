from action_analyzer import cli

cli.app()
