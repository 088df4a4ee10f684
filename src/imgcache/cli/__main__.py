from imgcache.cli.main import main

main()
