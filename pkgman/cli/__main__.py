from pkgman.cli import main

main()
