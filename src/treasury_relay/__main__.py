from treasury_relay.main import main

main()
