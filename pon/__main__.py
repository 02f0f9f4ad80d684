from pon.cli import main

main()
