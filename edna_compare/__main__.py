from edna_compare.main import main

main()
