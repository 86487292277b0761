from ok_target.cli import main

main()
