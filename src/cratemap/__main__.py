from cratemap.cli import main

main()
