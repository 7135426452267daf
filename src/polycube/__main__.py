from polycube.main import main

main()
