from sqlload.cli import main

main()
