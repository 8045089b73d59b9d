from zammy.cli.app import main

main()
