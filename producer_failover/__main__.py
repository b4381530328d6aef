from producer_failover.cli.main import main

main()
