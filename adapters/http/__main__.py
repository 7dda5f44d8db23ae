from adapters.http.server import main

main()
