from cpr.cli import main

main()
