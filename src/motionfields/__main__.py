from motionfields.cli import main

main()
