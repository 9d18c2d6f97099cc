from wakecron.cli import main

main()
