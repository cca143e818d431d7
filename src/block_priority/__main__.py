from .priority_cli import main

main()
