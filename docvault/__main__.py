from docvault.server import main

main()
