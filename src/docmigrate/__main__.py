from docmigrate.cli import main

main()
