from gentrack.main import main

if __name__ == "__main__":
    # Logging, settings printout and uvicorn startup all live in main()
    main()
