from whale.app import main

main()
